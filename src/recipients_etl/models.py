from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .normalization import normalize_country_iso2

MATCH_TYPES = ("exact", "likely", "possible")

RECIPIENT_FIELDS = ("name", "address1", "address2", "city", "state", "zip", "country")


def _clean(value: Any) -> str:
    return str(value or "").strip()


@dataclass(frozen=True)
class RecipientForDuplicateCheck:
    id: str
    name: str
    address1: str = ""
    address2: Optional[str] = None
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "US"

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "RecipientForDuplicateCheck":
        address2 = _clean(payload.get("address2"))
        return RecipientForDuplicateCheck(
            id=_clean(payload.get("id")),
            name=_clean(payload.get("name")),
            address1=_clean(payload.get("address1")),
            address2=address2 or None,
            city=_clean(payload.get("city")),
            state=_clean(payload.get("state")),
            zip=_clean(payload.get("zip")),
            country=normalize_country_iso2(payload.get("country")) or "US",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "country": self.country,
        }

    def replace(self, **changes: Any) -> "RecipientForDuplicateCheck":
        return replace(self, **changes)


@dataclass
class DuplicateMatch:
    """Outcome of comparing two recipients; order of the pair is preserved."""

    recipient1: RecipientForDuplicateCheck
    recipient2: RecipientForDuplicateCheck
    match_type: str
    confidence: int
    match_reasons: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.match_type not in MATCH_TYPES:
            raise ValueError(f"Unknown match type: {self.match_type!r}")

    @property
    def pair_key(self) -> tuple[str, str]:
        first, second = sorted((self.recipient1.id, self.recipient2.id))
        return first, second

    def involves(self, recipient_id: str) -> bool:
        return recipient_id in (self.recipient1.id, self.recipient2.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient1": self.recipient1.to_dict(),
            "recipient2": self.recipient2.to_dict(),
            "match_type": self.match_type,
            "confidence": self.confidence,
            "match_reasons": list(self.match_reasons),
        }


@dataclass(frozen=True)
class RecipientInput:
    name: str
    address1: str
    city: str
    state: str
    zip: str
    country: str = "US"
    address2: Optional[str] = None

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "RecipientInput":
        address2 = _clean(payload.get("address2"))
        return RecipientInput(
            name=_clean(payload.get("name")),
            address1=_clean(payload.get("address1")),
            address2=address2 or None,
            city=_clean(payload.get("city")),
            state=_clean(payload.get("state")),
            zip=_clean(payload.get("zip")),
            country=normalize_country_iso2(payload.get("country")) or "US",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "country": self.country,
        }


@dataclass(frozen=True)
class ParsedRow:
    data: Dict[str, Any]
    row_number: int
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_recipient(self) -> RecipientInput:
        if not self.is_valid:
            raise ValueError(f"row {self.row_number} did not validate")
        return RecipientInput.from_mapping(self.data)


@dataclass
class CsvParseResult:
    valid: List[ParsedRow] = field(default_factory=list)
    invalid: List[ParsedRow] = field(default_factory=list)
    total_rows: int = 0


@dataclass
class VCardContact:
    name: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address": self.address,
            "address2": self.address2,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "country": self.country,
            "email": self.email,
            "phone": self.phone,
        }


@dataclass(frozen=True)
class VCardInvalidEntry:
    index: int
    line: int
    error: str
    raw: str


@dataclass
class VCardParseResult:
    valid: List[VCardContact] = field(default_factory=list)
    invalid: List[VCardInvalidEntry] = field(default_factory=list)
    total_contacts: int = 0
