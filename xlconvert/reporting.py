"""Utilities for writing converted documents to disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .converter import OutputFormat, convert_workbook
from .errors import ConversionError

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 5


@dataclass
class BatchResult:
    """Outcome of :func:`convert_files`."""

    written: List[Path] = field(default_factory=list)
    failures: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.written)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def summary(self) -> str:
        lines = [
            "Batch conversion finished.",
            f"Succeeded: {self.success_count} file(s)",
            f"Failed: {self.failure_count} file(s)",
        ]
        if self.failures:
            lines.append("")
            lines.append("Errors:")
            for path, message in self.failures[:MAX_REPORTED_ERRORS]:
                lines.append(f"{path.name}: {message}")
            remaining = len(self.failures) - MAX_REPORTED_ERRORS
            if remaining > 0:
                lines.append(f"... and {remaining} more")
        return "\n".join(lines)


def default_output_path(source: Union[str, Path], output_format: Union[str, OutputFormat]) -> Path:
    """Return ``converted<ext>`` next to ``source``."""

    fmt = OutputFormat.parse(output_format)
    return Path(source).expanduser().parent / f"converted{fmt.extension}"


def write_output(content: str, path: Union[str, Path]) -> Path:
    """Write ``content`` as UTF-8, creating parent directories as needed."""

    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    logger.info("Wrote %s", target)
    return target


def convert_files(
    paths: Iterable[Union[str, Path]],
    output_dir: Union[str, Path],
    sheet: Optional[str] = None,
    output_format: Union[str, OutputFormat] = OutputFormat.MARKDOWN,
) -> BatchResult:
    """Convert each file to ``<output_dir>/<stem><ext>``.

    Files are processed one after another. A failing file is recorded in
    :attr:`BatchResult.failures` and does not stop the remaining ones.
    """

    fmt = OutputFormat.parse(output_format)
    directory = Path(output_dir).expanduser()
    if not directory.is_dir():
        raise NotADirectoryError(f"Output directory '{directory}' does not exist")

    sources = [Path(path) for path in paths]
    result = BatchResult()
    for index, source in enumerate(sources, start=1):
        logger.info("Converting (%d/%d) %s", index, len(sources), source.name)
        try:
            content = convert_workbook(source, sheet, fmt)
            result.written.append(write_output(content, directory / f"{source.stem}{fmt.extension}"))
        except (ConversionError, OSError) as exc:
            logger.warning("Failed to convert %s: %s", source, exc)
            result.failures.append((source, str(exc)))

    logger.info(
        "Batch conversion complete: %d succeeded, %d failed",
        result.success_count,
        result.failure_count,
    )
    return result


__all__ = [
    "BatchResult",
    "convert_files",
    "default_output_path",
    "write_output",
]
