from __future__ import annotations

import logging
import os
from typing import Any, Optional

from .config_loader import PipelineConfig, load_pipeline_config
from .csv_import import generate_csv_template, parse_csv
from .duplicates import find_duplicates, group_duplicates, merge_recipients, to_duplicate_checks
from .errors import CsvFormatError, ImportFormatError, VCardFormatError
from .matching import DuplicateMatcher, MatchSettings, check_duplicate
from .models import (
    CsvParseResult,
    DuplicateMatch,
    ParsedRow,
    RecipientForDuplicateCheck,
    RecipientInput,
    VCardContact,
    VCardParseResult,
)
from .normalization import normalize_address, normalize_name, normalize_zip
from .similarity import similarity
from .validation import ValidationSettings, validate_recipient
from .vcard_import import parse_vcard, validate_vcard_contact, vcard_to_recipient

logger = logging.getLogger(__name__)

__all__ = [
    "CsvFormatError",
    "CsvParseResult",
    "DuplicateMatch",
    "DuplicateMatcher",
    "ImportFormatError",
    "MatchSettings",
    "ParsedRow",
    "PipelineConfig",
    "RecipientForDuplicateCheck",
    "RecipientInput",
    "VCardContact",
    "VCardFormatError",
    "VCardParseResult",
    "ValidationSettings",
    "check_duplicate",
    "ensure_duplicate_check",
    "find_duplicates",
    "generate_csv_template",
    "group_duplicates",
    "load_config",
    "merge_recipients",
    "normalize_address",
    "normalize_name",
    "normalize_zip",
    "parse_csv",
    "parse_vcard",
    "read_text",
    "similarity",
    "to_duplicate_checks",
    "validate_recipient",
    "validate_vcard_contact",
    "vcard_to_recipient",
    "warn_missing",
]


def load_config(args: Any) -> PipelineConfig:
    return load_pipeline_config(args)


def warn_missing(path: Optional[str], label: str) -> bool:
    if not path or not os.path.exists(path):
        logger.warning("%s path missing: %s", label, path)
        return True
    return False


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8-sig", errors="replace") as handle:
        return handle.read()


def ensure_duplicate_check(obj: Any) -> RecipientForDuplicateCheck:
    if isinstance(obj, RecipientForDuplicateCheck):
        return obj
    if isinstance(obj, dict):
        return RecipientForDuplicateCheck.from_mapping(obj)
    raise TypeError(f"Unsupported recipient payload type: {type(obj)!r}")

