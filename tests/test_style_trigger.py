from __future__ import annotations

from typonorm.engine.options import RunOptions, StyleTriggerOptions
from typonorm.engine.style_trigger import StyleTriggerPass
from typonorm.surface.memory import MemoryFlow, TextDocument, TextParagraph


def _options(**overrides: object) -> StyleTriggerOptions:
    values: dict[str, object] = {
        "enabled": True,
        "trigger_styles": ["Heading 1"],
        "target_style": "First Paragraph",
    }
    values.update(overrides)
    return StyleTriggerOptions.model_validate(values)


def _document(**kwargs: object) -> TextDocument:
    return TextDocument.from_paragraphs(
        [
            ("Titre", "Heading 1"),
            ("", "Normal"),
            ("Premier", "Normal"),
            ("Second", "Normal"),
            ("Autre titre", "Heading 1"),
            ("Suite", "Normal"),
        ],
        **kwargs,
    )


def _paragraph_styles(document: TextDocument) -> list[str | None]:
    return [paragraph.style for paragraph in document.flows()[0].paragraphs]


def test_first_non_empty_paragraph_after_trigger_is_styled() -> None:
    document = _document()

    report = StyleTriggerPass(_options()).run(document)

    assert _paragraph_styles(document) == [
        "Heading 1",
        "Normal",
        "First Paragraph",
        "Normal",
        "Heading 1",
        "First Paragraph",
    ]
    assert report.changes["apply_target_style"] == 2


def test_consecutive_triggers_form_one_block() -> None:
    document = TextDocument.from_paragraphs(
        [("Partie", "Heading 1"), ("Chapitre", "Heading 2"), ("Texte", "Normal"), ("Encore", "Normal")]
    )

    StyleTriggerPass(_options(trigger_styles=["Heading 1", "Heading 2"])).run(document)

    assert _paragraph_styles(document) == ["Heading 1", "Heading 2", "First Paragraph", "Normal"]


def test_run_options_are_accepted() -> None:
    document = _document()

    report = StyleTriggerPass(RunOptions(style_trigger=_options())).run(document)

    assert report.changes["apply_target_style"] == 2


def test_pass_is_skipped_by_default() -> None:
    document = _document()

    report = StyleTriggerPass().run(document)

    assert report.skipped is True
    assert report.skip_reason == "disabled by options"
    assert _paragraph_styles(document)[2] == "Normal"


def test_missing_configuration_skips_pass() -> None:
    report = StyleTriggerPass(_options(target_style=None)).run(_document())

    assert report.skip_reason == "no trigger or target style configured"
    assert report.issues == []


def test_missing_target_style_is_an_error() -> None:
    document = _document(paragraph_styles=["Heading 1", "Normal"])

    report = StyleTriggerPass(_options()).run(document)

    assert report.skipped is True
    assert [issue.code for issue in report.issues] == ["MISSING_STYLE"]
    assert report.issues[0].context["style_kind"] == "paragraph"
    assert _paragraph_styles(document)[2] == "Normal"


class _LockedParagraph(TextParagraph):
    @property
    def style(self) -> str | None:
        return self._style

    @style.setter
    def style(self, name: str) -> None:
        raise PermissionError("paragraph is locked")


class _BrokenFlow(MemoryFlow):
    @property
    def paragraphs(self) -> list[TextParagraph]:
        raise RuntimeError("flow unreadable")


def test_failing_paragraph_is_reported_and_scan_continues() -> None:
    document = TextDocument(
        [
            MemoryFlow(
                "body",
                [
                    TextParagraph("Titre", style="Heading 1"),
                    _LockedParagraph("Verrouillé"),
                    TextParagraph("Autre titre", style="Heading 1"),
                    TextParagraph("Suite"),
                ],
            )
        ]
    )

    report = StyleTriggerPass(_options()).run(document)

    assert _paragraph_styles(document) == ["Heading 1", "Normal", "Heading 1", "First Paragraph"]
    assert [(issue.code, issue.paragraph_path, issue.severity) for issue in report.issues] == [
        ("PARAGRAPH_FAILED", "body.p1", "warn")
    ]
    assert report.changes["apply_target_style"] == 1


def test_failing_flow_is_reported_and_other_flows_run() -> None:
    document = TextDocument(
        [
            _BrokenFlow("cell.0"),
            MemoryFlow("body", [TextParagraph("Titre", style="Heading 1"), TextParagraph("Suite")]),
        ]
    )

    report = StyleTriggerPass(_options()).run(document)

    assert [issue.code for issue in report.issues] == ["FLOW_FAILED"]
    assert report.issues[0].context["flow"] == "cell.0"
    assert document.flows()[1].paragraphs[1].style == "First Paragraph"
    assert report.changes["apply_target_style"] == 1
