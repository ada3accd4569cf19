from __future__ import annotations

from pathlib import Path

import pytest

from typonorm.profiles.loader import (
    DEFAULT_PROFILE_ID,
    available_profile_ids,
    list_profiles,
    load_profile,
    load_profile_by_id,
    resolve_profile,
)
from typonorm.utils.patterns import NBSP, THIN_NBSP


def _write_profile(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_load_default_profile() -> None:
    profile = load_profile()

    assert profile.id == DEFAULT_PROFILE_ID == "fr-FR"
    assert profile.punctuation.space_before_colon == "nonbreaking"
    assert profile.numbers.separator_char == THIN_NBSP
    assert profile.numbers.decimal_mark == ","
    assert profile.centuries.enabled is True


def test_shipped_profiles_are_listed_in_display_order() -> None:
    assert available_profile_ids() == ["fr-FR", "fr-CH", "en-US", "en-UK", "de", "es", "it"]
    assert [profile.id for profile in list_profiles()] == available_profile_ids()


def test_fr_ch_uses_typographic_apostrophe_separator() -> None:
    profile = load_profile_by_id("fr-CH")

    assert profile.numbers.separator_char == "’"
    assert profile.punctuation.space_before_semicolon == "none"


def test_load_profile_raises_for_invalid_space_token(tmp_path: Path) -> None:
    path = _write_profile(
        tmp_path / "profile.yaml",
        """
meta:
  id: xx
punctuation:
  spaceBeforeColon: wide
""",
    )

    with pytest.raises(ValueError, match="Invalid profile schema"):
        load_profile(path)


def test_load_profile_raises_for_unknown_key(tmp_path: Path) -> None:
    path = _write_profile(
        tmp_path / "profile.yaml",
        """
meta:
  id: xx
numbers:
  thousandsSeparator: thin-nonbreaking
  groupSize: 4
""",
    )

    with pytest.raises(ValueError, match="Invalid profile schema"):
        load_profile(path)


def test_load_profile_rejects_separator_equal_to_decimal_mark(tmp_path: Path) -> None:
    path = _write_profile(
        tmp_path / "profile.yaml",
        """
meta:
  id: xx
numbers:
  thousandsSeparator: ","
  replacePointWithComma: true
""",
    )

    with pytest.raises(ValueError, match="Invalid profile schema"):
        load_profile(path)


def test_load_profile_maps_legacy_space_tokens(tmp_path: Path) -> None:
    path = _write_profile(
        tmp_path / "profile.yaml",
        """
meta:
  id: xx
punctuation:
  spaceBeforeColon: "~S"
  spaceBeforeSemicolon: "~<"
  spaceBeforeQuestion: " "
  spaceBeforeExclamation: ""
  spaceInsideOpenQuote: null
numbers:
  thousandsSeparator: "~<"
dashes:
  inciseSpace: "~S"
""",
    )

    profile = load_profile(path)

    assert profile.punctuation.space_before_colon == "nonbreaking"
    assert profile.punctuation.space_before_semicolon == "thin-nonbreaking"
    assert profile.punctuation.space_before_question == "ordinary"
    assert profile.punctuation.space_before_exclamation == "none"
    assert profile.punctuation.space_inside_open_quote == "none"
    assert profile.numbers.separator_char == THIN_NBSP
    assert profile.dashes.incise_space == "nonbreaking"


def test_load_profile_raises_for_broken_word_pattern(tmp_path: Path) -> None:
    path = _write_profile(
        tmp_path / "profile.yaml",
        """
meta:
  id: xx
data:
  motsOrdinaux:
    - "(unclosed"
""",
    )

    with pytest.raises(ValueError, match="Invalid pattern in data.motsOrdinaux"):
        load_profile(path)


def test_load_profile_raises_for_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Profile file not found"):
        load_profile(tmp_path / "missing.yaml")


def test_resolve_unknown_profile_falls_back_to_empty_profile() -> None:
    profile, issue = resolve_profile("xx-YY")

    assert profile.id == "xx-YY"
    assert profile.centuries.enabled is False
    assert profile.numbers.add_thousands_spaces is False
    assert profile.dashes.replace_cadratin_with_demi_cadratin is False
    assert issue is not None
    assert issue.code == "PROFILE_NOT_FOUND"
    assert issue.severity == "warn"


def test_resolve_known_profile_has_no_issue() -> None:
    profile, issue = resolve_profile("en-US")

    assert issue is None
    assert profile.numbers.separator_char == ","


def test_profile_get_reads_dotted_yaml_keys() -> None:
    profile = load_profile_by_id("fr-FR")

    assert profile.get("punctuation.spaceBeforeColon") == "nonbreaking"
    assert profile.get("punctuation.missing", "fallback") == "fallback"
    assert "ire" in profile.get_list("data.motsAmbigus")
    assert profile.get_list("meta.id") == []
    assert NBSP not in profile.get_list("data.motsAmbigus")
