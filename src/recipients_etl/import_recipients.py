from __future__ import annotations

import argparse
import csv
import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .common import load_config, read_text, warn_missing
from .config_loader import PipelineConfig
from .csv_import import parse_csv
from .errors import ImportFormatError
from .logging_utils import configure_logging
from .models import RECIPIENT_FIELDS
from .validation import ValidationSettings
from .vcard_import import contacts_to_recipients, parse_vcard

logger = logging.getLogger(__name__)

ERROR_COLUMNS = ["row_number", "name", "errors"]


def _empty_frames() -> Tuple[pd.DataFrame, pd.DataFrame]:
    return pd.DataFrame(columns=list(RECIPIENT_FIELDS)), pd.DataFrame(columns=ERROR_COLUMNS)


def _import_csv(
    path: str, config: PipelineConfig
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    result = parse_csv(read_text(path), ValidationSettings.from_config(config.validation))
    valid_rows = [row.to_recipient().to_dict() for row in result.valid]
    error_rows = [
        {
            "row_number": row.row_number,
            "name": row.data.get("name", ""),
            "errors": "|".join(row.errors),
        }
        for row in result.invalid
    ]
    return valid_rows, error_rows


def _import_vcf(path: str) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    result = parse_vcard(read_text(path))
    recipients, rejected = contacts_to_recipients(result.valid)
    valid_rows = [recipient.to_dict() for recipient in recipients]
    error_rows = [
        {"row_number": entry.index, "name": "", "errors": entry.error} for entry in result.invalid
    ]
    error_rows.extend(
        {"row_number": "", "name": contact.name, "errors": error} for contact, error in rejected
    )
    return valid_rows, error_rows


def build(
    args: argparse.Namespace, config: Optional[PipelineConfig] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    config = config or load_config(args)
    csv_path = config.inputs.get("csv")
    vcf_path = config.inputs.get("vcf")
    if bool(csv_path) == bool(vcf_path):
        raise ValueError("provide exactly one of --csv or --vcf")

    if csv_path:
        if warn_missing(csv_path, "Recipients CSV"):
            return _empty_frames()
        valid_rows, error_rows = _import_csv(csv_path, config)
    else:
        if warn_missing(vcf_path, "vCard"):
            return _empty_frames()
        valid_rows, error_rows = _import_vcf(vcf_path)

    valid_df = pd.DataFrame(valid_rows, columns=list(RECIPIENT_FIELDS))
    errors_df = pd.DataFrame(error_rows, columns=ERROR_COLUMNS)
    logger.info("Import ready: %d recipient(s), %d rejected", len(valid_df), len(errors_df))
    return valid_df, errors_df


def main() -> int:
    parser = argparse.ArgumentParser(description="Parse a CSV or vCard file into recipients.")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config.")
    parser.add_argument("--csv", type=str, default=None)
    parser.add_argument("--vcf", type=str, default=None)
    parser.add_argument("--out-dir", type=str, default=None)
    parser.add_argument("--zip-pattern", type=str, default=None)
    parser.add_argument("--default-country", type=str, default=None)
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")
    args = parser.parse_args()

    config = load_config(args)
    if bool(config.inputs.get("csv")) == bool(config.inputs.get("vcf")):
        parser.error("provide exactly one of --csv or --vcf")
    configure_logging(config, level_override=args.log_level)
    try:
        valid_df, errors_df = build(args, config=config)
    except ImportFormatError as exc:
        logger.error("Import failed: %s", exc)
        return 1

    out_dir = config.outputs.dir
    valid_path = out_dir / "import_valid.csv"
    errors_path = out_dir / "import_errors.csv"
    valid_df.to_csv(str(valid_path), index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)
    errors_df.to_csv(str(errors_path), index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)

    logger.info("Saved: %s", valid_path)
    logger.info("Saved: %s", errors_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
