"""Run options loading utilities."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from typonorm.engine.options import RunOptions


def load_options(path: Path | None = None) -> RunOptions:
    """Load and validate run options from YAML."""

    options_path = path or Path(__file__).with_name("options.yaml")

    try:
        raw = yaml.safe_load(options_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Options file not found: {options_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in options file: {options_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Options file must contain a mapping: {options_path}")

    try:
        return RunOptions.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid options schema: {options_path}: {exc}") from exc
