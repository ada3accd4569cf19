from __future__ import annotations

import pytest

from typonorm.engine import numbers
from typonorm.engine.models import PassReport
from typonorm.engine.numbers import NumberFormatter, group_digits
from typonorm.engine.options import NumberOptions, RunOptions
from typonorm.engine.protected import TOKEN_CLOSE, TOKEN_OPEN
from typonorm.profiles.loader import load_profile_by_id
from typonorm.profiles.models import LanguageProfile
from typonorm.surface.memory import TextDocument
from typonorm.utils.patterns import THIN_NBSP


def _format(text: str, profile_id: str = "fr-FR", **number_options: object) -> tuple[str, PassReport]:
    document = TextDocument.from_paragraphs([text])
    options = RunOptions(numbers=NumberOptions(**number_options))
    report = NumberFormatter(load_profile_by_id(profile_id), options).run(document)
    result = document.to_text()
    assert TOKEN_OPEN not in result and TOKEN_CLOSE not in result
    return result, report


def test_group_digits_from_the_right() -> None:
    assert group_digits("1234567", ",") == "1,234,567"
    assert group_digits("123", ",") == "123"
    assert group_digits("123456", " ") == "123 456"


def test_english_grouping_uses_comma() -> None:
    text, report = _format("Total 1234567 units", "en-US")

    assert text == "Total 1,234,567 units"
    assert report.changes["group_digit_runs"] == 1
    assert report.error_count == 0


def test_grouping_is_idempotent() -> None:
    first, _ = _format("Total 1234567 units and 1234.5 more", "en-US")
    second, report = _format(first, "en-US")

    assert second == first == "Total 1,234,567 units and 1,234.5 more"
    assert report.change_count == 0


def test_french_years_are_left_alone() -> None:
    text, _ = _format("Entre 1990–2000, en 1984, 25000 personnes")

    assert text == f"Entre 1990–2000, en 1984, 25{THIN_NBSP}000 personnes"


def test_years_are_grouped_when_not_excluded() -> None:
    text, _ = _format("En 1984 il y avait 25000 personnes", exclude_years=False)

    assert text == f"En 1{THIN_NBSP}984 il y avait 25{THIN_NBSP}000 personnes"


def test_french_decimal_point_becomes_comma() -> None:
    text, report = _format("Pi vaut 3.14")

    assert text == "Pi vaut 3,14"
    assert report.changes["restore_decimals"] == 1


def test_french_decimal_integer_part_is_grouped() -> None:
    text, _ = _format("Montant 1234567,89 euros")

    assert text == f"Montant 1{THIN_NBSP}234{THIN_NBSP}567,89 euros"


def test_point_before_three_digits_is_a_thousands_mark_in_comma_mode() -> None:
    text, _ = _format("Prix 1.000 euros")

    assert text == f"Prix 1{THIN_NBSP}000 euros"


def test_stray_separator_run_is_regrouped() -> None:
    text, report = _format("Il y a 10 0000 cas")

    assert text == f"Il y a 100{THIN_NBSP}000 cas"
    assert report.changes["group_stray_separators"] == 1


def test_swiss_apostrophe_chain_is_normalized() -> None:
    text, _ = _format("Prix 1'000'000 CHF", "fr-CH")

    assert text == "Prix 1’000’000 CHF"


def test_comma_conversion_without_grouping() -> None:
    text, report = _format("3.14 et 12345 et 1.234.567", add_spaces=False)

    assert text == "3,14 et 12345 et 1.234.567"
    assert report.changes["convert_decimal_points"] == 1


def test_separator_equal_to_decimal_mark_skips_pass() -> None:
    text, report = _format("Total 1234567", "en-US", use_comma=True)

    assert text == "Total 1234567"
    assert report.skipped is True
    assert [issue.code for issue in report.issues] == ["SEPARATOR_CONFLICT"]
    assert report.error_count == 1


def test_existing_token_delimiters_skip_pass() -> None:
    document = TextDocument.from_paragraphs([f"Code {TOKEN_OPEN} 1234567"])

    report = NumberFormatter(load_profile_by_id("fr-FR")).run(document)

    assert document.to_text() == f"Code {TOKEN_OPEN} 1234567"
    assert report.skipped is True
    assert report.issues[0].code == "TOKEN_CONFLICT"
    assert report.issues[0].severity == "warn"


def test_disabled_or_unconfigured_pass_is_skipped() -> None:
    _, disabled = _format("1234567", enabled=False)
    document = TextDocument.from_paragraphs(["1234567"])
    unconfigured = NumberFormatter(LanguageProfile.empty("xx")).run(document)

    assert disabled.skip_reason == "disabled by options"
    assert unconfigured.skip_reason == "no number formatting requested"
    assert document.to_text() == "1234567"


def test_unrestored_decimals_are_recovered_and_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_restore(self: numbers._GroupingRun) -> int:
        raise RuntimeError("restore interrupted")

    monkeypatch.setattr(numbers._GroupingRun, "restore_decimals", broken_restore)

    text, report = _format("3.14 et 12345")

    assert text == f"3,14 et 12{THIN_NBSP}345"
    codes = [issue.code for issue in report.issues]
    assert codes == ["RULE_FAILED", "TOKEN_NOT_RESTORED"]
    assert report.issues[1].context["recovered"] == 1


def test_stray_delimiters_are_stripped_and_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    def leaking_collapse(self: numbers._GroupingRun) -> int:
        return self.surface.change_all("et", f"e{TOKEN_CLOSE}t")

    monkeypatch.setattr(numbers._GroupingRun, "collapse_separators", leaking_collapse)

    text, report = _format("12345 et 678")

    assert text == f"12{THIN_NBSP}345 et 678"
    residue = [issue for issue in report.issues if issue.code == "TOKEN_RESIDUE"]
    assert len(residue) == 1
    assert residue[0].context["paragraphs"] == ["body.p0"]
