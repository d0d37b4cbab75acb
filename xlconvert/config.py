"""Configuration loading utilities for xlconvert."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .converter import OutputFormat


@dataclass
class ConversionConfig:
    """Which sheet to convert and to which format."""

    format: OutputFormat = OutputFormat.MARKDOWN
    sheet: Optional[str] = None


@dataclass
class OutputConfig:
    """Where converted documents should be written.

    With neither ``file`` nor ``directory`` set, a single conversion is
    returned to the caller (printed by the CLI) instead of being written.
    """

    directory: Optional[Path] = None
    file: Optional[Path] = None

    def resolved(self, base_path: Path) -> "OutputConfig":
        return OutputConfig(
            directory=_resolve_optional(self.directory, base_path),
            file=_resolve_optional(self.file, base_path),
        )


@dataclass
class AppConfig:
    """Container for all configuration required by the CLI."""

    inputs: List[Path] = field(default_factory=list)
    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def resolved(self, base_path: Path) -> "AppConfig":
        return AppConfig(
            inputs=[_resolve_path(path, base_path) for path in self.inputs],
            conversion=self.conversion,
            output=self.output.resolved(base_path),
        )


def load_config(path: Path) -> AppConfig:
    """Load :class:`AppConfig` from a YAML file."""

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{config_path}' does not exist")

    with config_path.open("r", encoding="utf-8") as stream:
        raw_config: Mapping[str, Any] = yaml.safe_load(stream) or {}

    if not isinstance(raw_config, Mapping):
        raise ValueError("Configuration root must be a mapping")

    paths_section = raw_config.get("paths") or {}
    input_entries = paths_section.get("inputs") or []
    if isinstance(input_entries, (str, bytes)) or not isinstance(input_entries, list):
        raise ValueError("paths.inputs must be a list of workbook paths")

    config = AppConfig(
        inputs=[Path(str(entry)) for entry in input_entries],
        conversion=_parse_conversion_section(raw_config.get("conversion") or {}),
        output=OutputConfig(**_parse_output_section(raw_config.get("output") or {})),
    )
    return config.resolved(config_path.parent)


def _parse_conversion_section(section: Mapping[str, Any]) -> ConversionConfig:
    unknown = set(section) - {"format", "sheet"}
    if unknown:
        raise ValueError("Unknown conversion settings: " + ", ".join(sorted(unknown)))

    parsed: Dict[str, Any] = {}
    if section.get("format") is not None:
        parsed["format"] = OutputFormat.parse(section["format"])
    parsed["sheet"] = _normalise_sheet_value(section.get("sheet"))
    return ConversionConfig(**parsed)


def _normalise_sheet_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    return str(value)


def _parse_output_section(section: Mapping[str, Any]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {}
    for key in ("directory", "file"):
        if section.get(key):
            parsed[key] = Path(section[key])
    return parsed


def _resolve_optional(path: Optional[Path], base_path: Path) -> Optional[Path]:
    if path is None:
        return None
    return _resolve_path(path, base_path)


def _resolve_path(path: Path, base_path: Path) -> Path:
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        return expanded
    return (base_path / expanded).resolve()
