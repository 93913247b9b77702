from __future__ import annotations

import argparse
import csv
import logging
from typing import Optional, Tuple

import pandas as pd

from .common import load_config, warn_missing
from .config_loader import PipelineConfig
from .csv_import import normalize_column_name
from .duplicates import find_duplicates, group_duplicates, to_duplicate_checks
from .logging_utils import configure_logging
from .matching import MatchSettings

logger = logging.getLogger(__name__)

PAIR_COLUMNS = ["recipient1_id", "recipient2_id", "match_type", "confidence", "match_reasons"]
GROUP_COLUMNS = ["group_id", "recipient_id", "name"]


def load_recipients_frame(path: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = df.rename(columns=lambda column: normalize_column_name(column) or column.strip().lower())
    if "id" not in df.columns:
        df["id"] = [f"row-{idx + 2}" for idx in range(len(df))]
    return df


def build(
    args: argparse.Namespace, config: Optional[PipelineConfig] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    config = config or load_config(args)
    path = config.inputs.get("recipients_csv")
    if warn_missing(path, "Recipients CSV"):
        return pd.DataFrame(columns=PAIR_COLUMNS), pd.DataFrame(columns=GROUP_COLUMNS)

    df = load_recipients_frame(str(path))
    recipients = to_duplicate_checks(df.to_dict(orient="records"))
    matches = find_duplicates(recipients, MatchSettings.from_config(config.dedupe))
    groups = group_duplicates(matches)

    pair_rows = [
        {
            "recipient1_id": match.recipient1.id,
            "recipient2_id": match.recipient2.id,
            "match_type": match.match_type,
            "confidence": match.confidence,
            "match_reasons": "|".join(match.match_reasons),
        }
        for match in matches
    ]
    group_rows = [
        {"group_id": group_idx, "recipient_id": member.id, "name": member.name}
        for group_idx, members in enumerate(groups, start=1)
        for member in members
    ]
    logger.info("%d pair(s) in %d group(s)", len(pair_rows), len(groups))
    return (
        pd.DataFrame(pair_rows, columns=PAIR_COLUMNS),
        pd.DataFrame(group_rows, columns=GROUP_COLUMNS),
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Report likely duplicate recipients.")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config.")
    parser.add_argument("--recipients-csv", type=str, default=None)
    parser.add_argument("--out-dir", type=str, default=None)
    parser.add_argument("--name-similar-threshold", type=float, default=None)
    parser.add_argument("--address-similar-threshold", type=float, default=None)
    parser.add_argument("--min-confidence", type=int, default=None)
    parser.add_argument("--exact-confidence", type=int, default=None)
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")
    args = parser.parse_args()

    config = load_config(args)
    configure_logging(config, level_override=args.log_level)
    pairs_df, groups_df = build(args, config=config)

    out_dir = config.outputs.dir
    pairs_path = out_dir / "duplicate_pairs.csv"
    groups_path = out_dir / "duplicate_groups.csv"
    pairs_df.to_csv(str(pairs_path), index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)
    groups_df.to_csv(str(groups_path), index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)

    logger.info("Saved: %s", pairs_path)
    logger.info("Saved: %s", groups_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
