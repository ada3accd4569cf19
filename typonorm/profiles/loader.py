"""Locale profile loading utilities."""

from __future__ import annotations

import logging
from pathlib import Path

import regex
import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from typonorm.engine.models import PassIssue
from typonorm.profiles.models import LanguageProfile
from typonorm.utils.events import log_event

logger = logging.getLogger("typonorm.engine")

DEFAULT_PROFILE_ID = "fr-FR"
# Display order of the shipped profiles; any other file sorts after them.
SHIPPED_PROFILE_ORDER = ("fr-FR", "fr-CH", "en-US", "en-UK", "de", "es", "it")

_PROFILE_ID_RE = regex.compile(r"[A-Za-z]{2,3}(?:-[A-Za-z0-9]{2,4})?")


def profile_path(profile_id: str) -> Path:
    if not _PROFILE_ID_RE.fullmatch(profile_id):
        raise ValueError(f"Invalid profile id: {profile_id!r}")
    return Path(__file__).with_name(f"{profile_id}.yaml")


def load_profile(path: Path | None = None) -> LanguageProfile:
    """Load and validate a locale profile from YAML."""

    source = path or profile_path(DEFAULT_PROFILE_ID)

    try:
        raw = yaml.safe_load(source.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Profile file not found: {source}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in profile file: {source}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Profile file must contain a mapping: {source}")

    try:
        profile = LanguageProfile.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid profile schema: {source}: {exc}") from exc

    _check_fragments(profile, source)
    return profile


def _check_fragments(profile: LanguageProfile, source: Path) -> None:
    fragments = [("centuries.keyword", profile.centuries.keyword)]
    for key, values in profile.data.model_dump(by_alias=True).items():
        fragments.extend((f"data.{key}", value) for value in values)
    for key, fragment in fragments:
        try:
            regex.compile(fragment)
        except regex.error as exc:
            raise ValueError(f"Invalid pattern in {key} ({fragment!r}): {source}") from exc


def load_profile_by_id(profile_id: str) -> LanguageProfile:
    profile = load_profile(profile_path(profile_id))
    if profile.id != profile_id:
        raise ValueError(f"Profile id mismatch: expected {profile_id}, found {profile.id}")
    return profile


def available_profile_ids() -> list[str]:
    found = {path.stem for path in Path(__file__).parent.glob("*.yaml")}
    ordered = [profile_id for profile_id in SHIPPED_PROFILE_ORDER if profile_id in found]
    ordered.extend(sorted(found - set(ordered)))
    return ordered


def list_profiles() -> list[LanguageProfile]:
    return [load_profile_by_id(profile_id) for profile_id in available_profile_ids()]


def resolve_profile(profile_id: str) -> tuple[LanguageProfile, PassIssue | None]:
    """Load a shipped profile, falling back to an empty one when it is unknown.

    Only an unknown id falls back; a shipped file that fails to load still
    raises ``ValueError``.
    """

    if profile_id in available_profile_ids():
        return load_profile_by_id(profile_id), None

    log_event(logger, logging.WARNING, "profile_not_found", profile_id=profile_id)
    issue = PassIssue(
        code="PROFILE_NOT_FOUND",
        message=f"Unknown profile '{profile_id}'; all profile-driven rules are disabled.",
        pass_name="profile",
        severity="warn",
        context={"profile_id": profile_id},
    )
    return LanguageProfile.empty(profile_id), issue
