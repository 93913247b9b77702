from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .config_loader import DEFAULT_ZIP_PATTERN, ValidationConfig

SUPPORTED_COUNTRIES = [
    {"code": "US", "name": "United States", "postal_label": "ZIP Code"},
    {"code": "CA", "name": "Canada", "postal_label": "Postal Code"},
    {"code": "GB", "name": "United Kingdom", "postal_label": "Postcode"},
    {"code": "AU", "name": "Australia", "postal_label": "Postcode"},
    {"code": "DE", "name": "Germany", "postal_label": "Postcode"},
    {"code": "FR", "name": "France", "postal_label": "Postal Code"},
    {"code": "JP", "name": "Japan", "postal_label": "Postal Code"},
    {"code": "MX", "name": "Mexico", "postal_label": "Postal Code"},
]

ZIP_FORMAT_MESSAGE = "ZIP code must be in format 12345 or 12345-6789"

# field -> (required message, min length, max length, label for length errors)
_TEXT_RULES = (
    ("name", "Name is required", 1, 100, "Name"),
    ("address1", "Address is required", 1, 200, "Address"),
    ("address2", None, 0, 200, "Address line 2"),
    ("city", "City is required", 1, 100, "City"),
    ("state", "State is required", 2, 50, "State"),
)


@dataclass(frozen=True)
class ValidationSettings:
    zip_pattern: str = DEFAULT_ZIP_PATTERN
    default_country: str = "US"

    @classmethod
    def from_config(cls, config: ValidationConfig) -> "ValidationSettings":
        return cls(zip_pattern=config.zip_pattern, default_country=config.default_country)


def postal_label(country_code: str) -> str:
    for country in SUPPORTED_COUNTRIES:
        if country["code"] == (country_code or "").upper():
            return country["postal_label"]
    return "Postal Code"


def validate_recipient(
    data: Dict[str, Any], settings: Optional[ValidationSettings] = None
) -> Tuple[Dict[str, Any], List[str]]:
    """Validate a canonical recipient mapping; returns (cleaned, errors)."""
    settings = settings or ValidationSettings()
    cleaned: Dict[str, Any] = {}
    errors: List[str] = []

    for key, required_message, min_len, max_len, label in _TEXT_RULES:
        value = str(data.get(key) or "").strip()
        if required_message and len(value) < min_len:
            errors.append(f"{key}: {required_message}")
        elif len(value) > max_len:
            errors.append(f"{key}: {label} must be at most {max_len} characters")
        cleaned[key] = value

    zip_code = str(data.get("zip") or "").strip()
    if not re.match(settings.zip_pattern, zip_code):
        errors.append(f"zip: {ZIP_FORMAT_MESSAGE}")
    cleaned["zip"] = zip_code

    cleaned["address2"] = cleaned["address2"] or None
    cleaned["country"] = str(data.get("country") or "").strip() or settings.default_country
    return cleaned, errors
