from __future__ import annotations

import json
from pathlib import Path

import pytest
from docx import Document

from apps.cli.io import (
    build_output_paths,
    existing_output_files,
    open_surface,
    write_fallback_report_atomic,
    write_run_output_atomic,
)
from typonorm.engine.models import PassReport, RunReport
from typonorm.surface.docx_surface import DocxSurface
from typonorm.surface.memory import TextDocument
from typonorm.utils.errors import SurfaceUnavailableError


def _report() -> RunReport:
    return RunReport.from_passes([PassReport(name="corrections")], profile_id="fr-FR", source="in.txt")


def test_output_paths_keep_input_kind(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path, Path("Livre.DOCX"))

    assert paths.document == tmp_path / "out.docx"
    assert paths.report == tmp_path / "out.report.json"
    assert existing_output_files(paths) == []


def test_open_surface_reads_text_lines(tmp_path: Path) -> None:
    path = tmp_path / "in.txt"
    path.write_text("un\ndeux\n", encoding="utf-8")

    surface = open_surface(path)

    assert isinstance(surface, TextDocument)
    assert surface.to_text() == "un\ndeux"


def test_open_surface_rejects_unsupported_type(tmp_path: Path) -> None:
    path = tmp_path / "in.odt"
    path.write_bytes(b"")

    with pytest.raises(SurfaceUnavailableError, match="Unsupported input type"):
        open_surface(path)


def test_open_surface_rejects_undecodable_text(tmp_path: Path) -> None:
    path = tmp_path / "in.txt"
    path.write_bytes(b"\xff\xfe\xfa")

    with pytest.raises(SurfaceUnavailableError, match="Cannot read text file"):
        open_surface(path)


def test_write_run_output_atomic_writes_text_and_report(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path / "out", Path("in.txt"))

    write_run_output_atomic(paths, TextDocument.from_text("bonjour"), _report())

    assert paths.document.read_text(encoding="utf-8") == "bonjour"
    payload = json.loads(paths.report.read_text(encoding="utf-8"))
    assert payload["profile_id"] == "fr-FR"
    assert payload["passes"][0]["name"] == "corrections"
    assert list((tmp_path / "out").glob("*.tmp")) == []


def test_write_run_output_atomic_cleans_docx_tmp_on_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    document = Document()
    document.add_paragraph("bonjour")
    surface = DocxSurface(document)
    paths = build_output_paths(tmp_path, Path("in.docx"))

    def broken_save(_: Path) -> None:
        raise RuntimeError("save failed")

    monkeypatch.setattr(surface, "save", broken_save)

    with pytest.raises(RuntimeError, match="save failed"):
        write_run_output_atomic(paths, surface, _report())

    assert not paths.document.exists()
    assert list(tmp_path.glob("out.docx.*.tmp")) == []


def test_fallback_report_keeps_base_report(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path, Path("in.txt"))

    write_fallback_report_atomic(
        paths,
        error_type="OSError",
        error_message="disk full",
        stage="write_output",
        base_report=_report(),
    )

    payload = json.loads(paths.report.read_text(encoding="utf-8"))
    assert payload["source"] == "in.txt"
    assert payload["error"] == {"error_type": "OSError", "error_message": "disk full", "stage": "write_output"}


def test_failed_report_replace_leaves_no_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths = build_output_paths(tmp_path, Path("in.txt"))

    def broken_replace(self: Path, target: Path) -> Path:
        raise OSError("replace failed")

    monkeypatch.setattr(Path, "replace", broken_replace)

    with pytest.raises(OSError, match="replace failed"):
        write_run_output_atomic(paths, TextDocument.from_text("bonjour"), _report())

    assert not paths.document.exists()
    assert not paths.report.exists()
    assert list(tmp_path.glob("*.tmp")) == []
