"""CLI I/O helpers: input surfaces and atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from typonorm.engine.models import RunReport
from typonorm.surface.base import TextSurface
from typonorm.surface.docx_surface import DocxSurface
from typonorm.surface.memory import TextDocument
from typonorm.utils.errors import SurfaceUnavailableError

SUPPORTED_SUFFIXES = (".docx", ".txt")


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single run."""

    document: Path
    report: Path


def build_output_paths(out_dir: Path, input_path: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir; the document keeps the input kind."""

    suffix = input_path.suffix.lower()
    return OutputPaths(
        document=out_dir / f"out{suffix}",
        report=out_dir / "out.report.json",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    return [path for path in (paths.document, paths.report) if path.exists()]


def open_surface(path: Path) -> TextSurface:
    """Open ``path`` as an editable surface; unsupported or unreadable input raises."""

    suffix = path.suffix.lower()
    if suffix == ".docx":
        return DocxSurface.open(path)
    if suffix == ".txt":
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SurfaceUnavailableError(f"Cannot read text file: {exc}", source=str(path)) from exc
        return TextDocument.from_text(text)
    raise SurfaceUnavailableError(
        f"Unsupported input type '{suffix or path.name}' (expected one of: {', '.join(SUPPORTED_SUFFIXES)})",
        source=str(path),
    )


def write_run_output_atomic(paths: OutputPaths, surface: TextSurface, report: RunReport) -> None:
    """Write the corrected document and its report using temporary files + replace."""

    paths.document.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(surface, DocxSurface):
        _atomic_write_docx(paths.document, surface)
    elif isinstance(surface, TextDocument):
        _atomic_write_text(paths.document, surface.to_text(include_notes=True))
    else:
        raise TypeError(f"Cannot write surface of type {type(surface).__name__}")
    _atomic_write_json(paths.report, report.model_dump(mode="json"))


def write_fallback_report_atomic(
    paths: OutputPaths,
    *,
    error_type: str,
    error_message: str,
    stage: str,
    profile_id: str | None = None,
    base_report: RunReport | None = None,
) -> None:
    """Write a failure report with the required error metadata."""

    error_block = {
        "error_type": error_type,
        "error_message": error_message,
        "stage": stage,
    }
    if base_report is not None:
        payload = base_report.model_dump(mode="json")
    else:
        payload = {
            "profile_id": profile_id,
            "source": None,
            "passed": False,
            "change_count": 0,
            "error_count": 1,
            "warning_count": 0,
            "passes": [],
            "issues": [],
        }
    payload["error"] = error_block

    paths.report.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.report, payload)


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        tmp_path.replace(path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def _atomic_write_text(path: Path, text: str) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(text)
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        tmp_path.replace(path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def _atomic_write_docx(path: Path, surface: DocxSurface) -> None:
    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        surface.save(tmp_path)
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise
