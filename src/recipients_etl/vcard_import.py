from __future__ import annotations

import logging
import quopri
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import VCardFormatError
from .models import RecipientInput, VCardContact, VCardInvalidEntry, VCardParseResult
from .normalization import normalize_country_iso2

logger = logging.getLogger(__name__)

LINE_SPLIT = re.compile(r"\r\n|\r|\n")
GROUP_PREFIX = re.compile(r"^[A-Za-z0-9-]+\.")
APARTMENT_PATTERN = re.compile(r"^(apt|suite|#|ste|unit|apartment)", re.IGNORECASE)
ESCAPE_PATTERN = re.compile(r"\\([\\,;nN])")

ENCODING_VALUES = {"QUOTED-PRINTABLE", "BASE64", "B", "8BIT", "7BIT"}
RAW_PREVIEW_LENGTH = 100


@dataclass
class VCardProperty:
    name: str
    value: str
    params: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def encoding(self) -> str:
        values = self.params.get("ENCODING", [])
        return values[0].upper() if values else ""

    @property
    def charset(self) -> str:
        values = self.params.get("CHARSET", [])
        return values[0] if values else "utf-8"

    @property
    def types(self) -> List[str]:
        return [token.lower() for token in self.params.get("TYPE", [])]

    @property
    def is_preferred(self) -> bool:
        # 2.1/3.0 use TYPE=pref, 4.0 uses PREF=1
        return "pref" in self.types or "PREF" in self.params


@dataclass
class _RawBlock:
    index: int
    line: int
    lines: List[str]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def _keep_unterminated(blocks: List[_RawBlock], block: _RawBlock) -> None:
    logger.warning("vCard starting at line %d has no END:VCARD", block.line)
    blocks.append(block)


def split_vcards(content: str) -> List[_RawBlock]:
    blocks: List[_RawBlock] = []
    current: Optional[_RawBlock] = None
    for line_number, line in enumerate(LINE_SPLIT.split(content), start=1):
        marker = line.strip().upper()
        if marker == "BEGIN:VCARD":
            if current is not None:
                _keep_unterminated(blocks, current)
            current = _RawBlock(index=len(blocks) + 1, line=line_number, lines=[line])
        elif marker == "END:VCARD":
            if current is not None:
                current.lines.append(line)
                blocks.append(current)
                current = None
        elif current is not None:
            current.lines.append(line)
    if current is not None:
        _keep_unterminated(blocks, current)
    return blocks


def _is_quoted_printable(line: str) -> bool:
    head = _split_property(line)[0].upper()
    return "QUOTED-PRINTABLE" in head


def unfold_lines(lines: List[str]) -> List[str]:
    """Join folded continuation lines and quoted-printable soft breaks."""
    unfolded: List[str] = []
    soft_break = False
    for raw_line in lines:
        if not raw_line.strip():
            soft_break = False
            continue
        if unfolded and (soft_break or raw_line[0] in (" ", "\t")):
            previous = unfolded[-1][:-1] if soft_break else unfolded[-1]
            unfolded[-1] = previous + raw_line.strip()
        else:
            unfolded.append(raw_line.strip())
        current = unfolded[-1]
        soft_break = current.endswith("=") and _is_quoted_printable(current)
    return unfolded


def _split_property(line: str) -> Tuple[str, str]:
    in_quotes = False
    for idx, ch in enumerate(line):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == ":" and not in_quotes:
            return line[:idx], line[idx + 1 :]
    return line, ""


def parse_property_line(line: str) -> Optional[VCardProperty]:
    if ":" not in line:
        return None
    head, value = _split_property(line)
    name_part, *raw_params = head.split(";")
    # Apple exports prefix grouped properties, e.g. "item1.ADR"
    name_part = GROUP_PREFIX.sub("", name_part, count=1)

    params: Dict[str, List[str]] = {}
    for raw_param in raw_params:
        raw_param = raw_param.strip()
        if not raw_param:
            continue
        if "=" in raw_param:
            key, val = raw_param.split("=", 1)
            key = key.strip().upper()
            tokens = [token.strip().strip('"') for token in val.split(",") if token.strip()]
        else:
            # vCard 2.1 bare parameters: "TEL;CELL", "ADR;QUOTED-PRINTABLE"
            tokens = [raw_param]
            key = "ENCODING" if raw_param.upper() in ENCODING_VALUES else "TYPE"
        params.setdefault(key, []).extend(tokens)
    return VCardProperty(name=name_part.strip().upper(), value=value, params=params)


def decode_value(prop: VCardProperty) -> str:
    if prop.encoding != "QUOTED-PRINTABLE":
        return prop.value
    decoded = quopri.decodestring(prop.value.encode("utf-8"))
    try:
        return decoded.decode(prop.charset, errors="replace")
    except LookupError:
        logger.debug("Unknown vCard charset %s, decoding as UTF-8", prop.charset)
        return decoded.decode("utf-8", errors="replace")


def unescape_value(value: str) -> str:
    def _replace(match: "re.Match[str]") -> str:
        char = match.group(1)
        return "\n" if char in "nN" else char

    return ESCAPE_PATTERN.sub(_replace, value or "")


def split_components(value: str) -> List[str]:
    """Split a structured value on unescaped semicolons, then unescape each part."""
    parts: List[str] = []
    current: List[str] = []
    idx = 0
    while idx < len(value):
        ch = value[idx]
        if ch == "\\" and idx + 1 < len(value):
            current.append(value[idx : idx + 2])
            idx += 2
            continue
        if ch == ";":
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        idx += 1
    parts.append("".join(current))
    return [unescape_value(part).strip() for part in parts]


def _part(parts: List[str], idx: int) -> str:
    return parts[idx] if idx < len(parts) else ""


def _looks_like_apartment(value: str) -> bool:
    return bool(value and APARTMENT_PATTERN.match(value))


def _apply_address(contact: VCardContact, parts: List[str]) -> None:
    # PO Box;Extended;Street;City;Region;Postal;Country
    extended, street = _part(parts, 1), _part(parts, 2)
    city, state, zip_code, country = (_part(parts, idx) for idx in range(3, 7))
    if len(parts) == 8 and _looks_like_apartment(_part(parts, 3)):
        extended = _part(parts, 3)
        city, state, zip_code, country = (_part(parts, idx) for idx in range(4, 8))
    if _looks_like_apartment(street) and re.search(r"\d", extended):
        extended, street = street, extended

    address = " ".join(value for value in (extended, street) if value)
    contact.address = address or None
    contact.address2 = None
    contact.city = city or None
    contact.state = state or None
    contact.zip = zip_code or None
    contact.country = country or None


def clean_phone(value: str) -> Optional[str]:
    value = (value or "").strip()
    digits = re.sub(r"\D", "", value)
    if not digits:
        return None
    return f"+{digits}" if value.startswith("+") else digits


def parse_single_vcard(lines: List[str]) -> VCardContact:
    contact = VCardContact()
    formatted_name = ""
    structured_name: Optional[List[str]] = None
    address_set = False

    for line in unfold_lines(lines):
        prop = parse_property_line(line)
        if prop is None:
            continue
        value = decode_value(prop)
        if prop.name == "FN":
            formatted_name = unescape_value(value).strip()
        elif prop.name == "N":
            structured_name = split_components(value)
            contact.last_name = _part(structured_name, 0) or None
            contact.first_name = _part(structured_name, 1) or None
        elif prop.name == "ADR":
            if not address_set or prop.is_preferred:
                _apply_address(contact, split_components(value))
                address_set = True
        elif prop.name == "EMAIL":
            if not contact.email:
                contact.email = unescape_value(value).strip() or None
        elif prop.name == "TEL":
            if not contact.phone:
                contact.phone = clean_phone(unescape_value(value))

    if formatted_name:
        contact.name = formatted_name
    elif structured_name is not None:
        contact.name = " ".join(
            part for part in (_part(structured_name, 1), _part(structured_name, 0)) if part
        )
    return contact


def parse_vcard(content: str) -> VCardParseResult:
    if not (content or "").strip():
        raise VCardFormatError("vCard content is empty")
    if "BEGIN:VCARD" not in content.upper():
        raise VCardFormatError("Invalid vCard format: missing BEGIN:VCARD")

    blocks = split_vcards(content)
    result = VCardParseResult(total_contacts=len(blocks))
    for block in blocks:
        try:
            contact = parse_single_vcard(block.lines)
        except ValueError as exc:
            contact, error = None, str(exc) or "Unknown parsing error"
        else:
            error = "" if contact.name else "Missing required field: name"

        if contact is not None and not error:
            result.valid.append(contact)
            continue
        logger.debug("vCard %d (line %d) rejected: %s", block.index, block.line, error)
        result.invalid.append(
            VCardInvalidEntry(
                index=block.index,
                line=block.line,
                error=error,
                raw=block.text[:RAW_PREVIEW_LENGTH] + "...",
            )
        )

    logger.info(
        "Parsed vCard: %d valid, %d invalid of %d contact(s)",
        len(result.valid),
        len(result.invalid),
        result.total_contacts,
    )
    return result


def validate_vcard_contact(contact: VCardContact) -> Optional[str]:
    if not (contact.name or "").strip():
        return "Name is required"
    if not (contact.address or "").strip() and not (contact.city or "").strip():
        return "Address or city is required"
    return None


def vcard_to_recipient(contact: VCardContact) -> RecipientInput:
    return RecipientInput(
        name=contact.name,
        address1=contact.address or "",
        address2=contact.address2,
        city=contact.city or "",
        state=contact.state or "",
        zip=contact.zip or "",
        country=normalize_country_iso2(contact.country) or "US",
    )


def contacts_to_recipients(
    contacts: List[VCardContact],
) -> Tuple[List[RecipientInput], List[Tuple[VCardContact, str]]]:
    recipients: List[RecipientInput] = []
    rejected: List[Tuple[VCardContact, str]] = []
    for contact in contacts:
        error = validate_vcard_contact(contact)
        if error:
            rejected.append((contact, error))
        else:
            recipients.append(vcard_to_recipient(contact))
    return recipients, rejected
