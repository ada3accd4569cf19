from __future__ import annotations

from typonorm.engine.models import PassReport
from typonorm.engine.options import OrdinalOptions, RunOptions
from typonorm.engine.ordinals import OrdinalCenturyFormatter, OrdinalWords
from typonorm.profiles.loader import load_profile_by_id
from typonorm.surface.base import CharFormat
from typonorm.surface.memory import MemoryFlow, TextDocument, TextParagraph
from typonorm.utils.patterns import NBSP


def _format(
    text: str, profile_id: str = "fr-FR", options: RunOptions | None = None
) -> tuple[TextParagraph, PassReport]:
    document = TextDocument.from_paragraphs([text])
    report = OrdinalCenturyFormatter(load_profile_by_id(profile_id), options).run(document)
    return document.flows()[0].paragraphs[0], report


def _styles(paragraph: TextParagraph) -> list[str | None]:
    return [char_format.char_style for char_format in paragraph.formats]


def test_century_is_lowercased_and_split_styled() -> None:
    paragraph, report = _format("XIXe siècle")

    assert paragraph.text == "xixe siècle"
    assert _styles(paragraph)[:5] == ["Small caps", "Small caps", "Small caps", "Superscript", None]
    assert report.changes["century_uppercase"] == 1
    assert report.error_count == 0


def test_centuries_after_article_and_ordinal_before_noun() -> None:
    paragraph, _ = _format("Au XVIIIe siècle, la IIIe République")

    assert paragraph.text == f"Au xviiie siècle, la IIIe{NBSP}République"
    styles = _styles(paragraph)
    assert styles[3:9] == ["Small caps"] * 5 + ["Superscript"]
    assert styles[21:25] == ["Large Capitals"] * 3 + ["Superscript"]


def test_defective_first_century_gets_er_suffix() -> None:
    paragraph, report = _format("Au Ie siècle")

    assert paragraph.text == "Au Ier siècle"
    assert _styles(paragraph)[3:6] == ["Small caps", "Superscript", "Superscript"]
    assert report.changes["century_first_defective"] == 1


def test_first_orthography_is_normalized() -> None:
    paragraph, report = _format("la Ière fois")

    assert paragraph.text == "la Ire fois"
    assert report.changes["normalize_orthography"] == 1


def test_first_before_trigger_word_gets_capitals() -> None:
    paragraph, report = _format("le Ier régiment")

    assert paragraph.text == "le Ier régiment"
    assert _styles(paragraph)[3:6] == ["Large Capitals", "Superscript", "Superscript"]
    assert report.changes["ordinal_first"] == 1


def test_ambiguous_lowercase_words_are_untouched() -> None:
    paragraph, report = _format("son ire aveugle et la vie entière")

    assert paragraph.text == "son ire aveugle et la vie entière"
    assert set(_styles(paragraph)) == {None}
    assert report.change_count == 0


def test_regnal_numeral_gets_nonbreaking_space_and_capitals() -> None:
    paragraph, _ = _format("Louis XIV régna")

    assert paragraph.text == f"Louis{NBSP}XIV régna"
    assert _styles(paragraph)[6:9] == ["Large Capitals"] * 3


def test_reference_spaces() -> None:
    paragraph, report = _format("voir p. 12-15, n° 3b, 20 km et M. Dupont")

    assert paragraph.text == f"voir p.{NBSP}12-15, n°{NBSP}3b, 20{NBSP}km et M.{NBSP}Dupont"
    assert report.changes["page_range"] == 1
    assert report.changes["number_unit"] == 1
    assert report.changes["appellation_name"] == 1


def test_missing_styles_are_reported_per_family() -> None:
    document = TextDocument.from_paragraphs(["Le XIXe siècle"], character_styles=["Superscript"])

    report = OrdinalCenturyFormatter(load_profile_by_id("fr-FR")).run(document)

    assert document.to_text() == "Le XIXe siècle"
    missing = [issue for issue in report.issues if issue.code == "MISSING_STYLE"]
    assert {issue.rule for issue in missing} == {"centuries", "ordinals", "references"}
    assert report.error_count == 3


def test_disabled_family_is_not_run() -> None:
    options = RunOptions(ordinals=OrdinalOptions(format_centuries=False))

    paragraph, report = _format("XIXe siècle", options=options)

    assert "century_uppercase" not in report.changes
    assert paragraph.text.startswith("XIX")


def test_profile_without_convention_skips_pass() -> None:
    paragraph, report = _format("XIXe century", "en-US")

    assert report.skipped is True
    assert paragraph.text == "XIXe century"


def test_empty_word_lists_yield_no_constraints() -> None:
    words = OrdinalWords.from_profile(load_profile_by_id("en-US"))

    assert words.not_trigger == ""
    assert words.not_ambiguous == ""


def test_capitalized_ambiguous_words_are_untouched() -> None:
    paragraph, report = _format("Ire colère du roi. Vie et mort.")

    assert paragraph.text == "Ire colère du roi. Vie et mort."
    assert set(_styles(paragraph)) == {None}
    assert report.change_count == 0


def test_centuries_after_articles_share_century_style() -> None:
    paragraph, _ = _format("du XIIe au XVe siècle")

    assert paragraph.text == "du xiie au xve siècle"
    styles = _styles(paragraph)
    assert styles[3:7] == ["Small caps"] * 3 + ["Superscript"]
    assert styles[11:14] == ["Small caps"] * 2 + ["Superscript"]


def test_plural_centuries_after_article() -> None:
    paragraph, _ = _format("les XIe et XIIe siècles")

    assert paragraph.text == "les xie et xiie siècles"
    styles = _styles(paragraph)
    assert styles[4:7] == ["Small caps"] * 2 + ["Superscript"]
    assert styles[11:15] == ["Small caps"] * 3 + ["Superscript"]


def test_ordinal_before_trigger_and_century_before_punctuation() -> None:
    paragraph, _ = _format("Il habite le Ve arrondissement et le XXe.")

    assert paragraph.text == "Il habite le Ve arrondissement et le xxe."
    styles = _styles(paragraph)
    assert styles[13:15] == ["Large Capitals", "Superscript"]
    assert styles[37:40] == ["Small caps"] * 2 + ["Superscript"]


def test_italic_survives_numeral_split() -> None:
    text = "XIXe siècle"
    formats = [CharFormat(italic=True)] * 4 + [CharFormat()] * (len(text) - 4)
    document = TextDocument([MemoryFlow("body", [TextParagraph(text, formats=formats)])])

    OrdinalCenturyFormatter(load_profile_by_id("fr-FR")).run(document)

    paragraph = document.flows()[0].paragraphs[0]
    assert paragraph.text == "xixe siècle"
    assert [char_format.italic for char_format in paragraph.formats[:5]] == [True] * 4 + [False]
    assert [char_format.char_style for char_format in paragraph.formats[:4]] == ["Small caps"] * 3 + ["Superscript"]
