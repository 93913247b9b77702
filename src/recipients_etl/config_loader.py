from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore[import-untyped]

DEFAULT_ZIP_PATTERN = r"^\d{5}(-\d{4})?$"


@dataclass
class OutputsConfig:
    dir: Path


@dataclass
class DedupeConfig:
    name_similar_threshold: float = 0.85
    address_similar_threshold: float = 0.80
    min_confidence: int = 40
    exact_confidence: int = 80


@dataclass
class ValidationConfig:
    zip_pattern: str = DEFAULT_ZIP_PATTERN
    default_country: str = "US"


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class PipelineConfig:
    inputs: Dict[str, Optional[str]]
    outputs: OutputsConfig
    dedupe: DedupeConfig
    validation: ValidationConfig
    logging: LoggingConfig


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _pick(args: argparse.Namespace, name: str, section: Dict[str, Any], default: Any) -> Any:
    value = getattr(args, name, None)
    if value is not None:
        return value
    return section.get(name, default)


def load_pipeline_config(args: argparse.Namespace) -> PipelineConfig:
    config_data = _load_yaml(getattr(args, "config", None))
    inputs = config_data.get("inputs", {}) or {}
    outputs_cfg = config_data.get("outputs", {}) or {}
    dedupe_cfg = config_data.get("dedupe", {}) or {}
    validation_cfg = config_data.get("validation", {}) or {}
    logging_cfg = config_data.get("logging", {}) or {}

    outputs_dir = Path(getattr(args, "out_dir", None) or outputs_cfg.get("dir") or os.getcwd())
    outputs = OutputsConfig(dir=outputs_dir)

    dedupe = DedupeConfig(
        name_similar_threshold=float(_pick(args, "name_similar_threshold", dedupe_cfg, 0.85)),
        address_similar_threshold=float(
            _pick(args, "address_similar_threshold", dedupe_cfg, 0.80)
        ),
        min_confidence=int(_pick(args, "min_confidence", dedupe_cfg, 40)),
        exact_confidence=int(_pick(args, "exact_confidence", dedupe_cfg, 80)),
    )

    validation = ValidationConfig(
        zip_pattern=_pick(args, "zip_pattern", validation_cfg, DEFAULT_ZIP_PATTERN),
        default_country=_pick(args, "default_country", validation_cfg, "US") or "US",
    )

    arg_level = getattr(args, "log_level", None)
    effective_level = (arg_level or logging_cfg.get("level") or "WARNING").upper()
    logging_config = LoggingConfig(level=effective_level)

    resolved_inputs = {
        "csv": getattr(args, "csv", None) or inputs.get("csv"),
        "vcf": getattr(args, "vcf", None) or inputs.get("vcf"),
        "recipients_csv": getattr(args, "recipients_csv", None) or inputs.get("recipients_csv"),
    }

    return PipelineConfig(
        inputs=resolved_inputs,
        outputs=outputs,
        dedupe=dedupe,
        validation=validation,
        logging=logging_config,
    )
