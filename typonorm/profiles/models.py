"""Data models for locale profiles."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from typonorm.utils.patterns import NBSP, THIN_NBSP

SpaceToken = Literal["thin-nonbreaking", "nonbreaking", "ordinary", "none"]

SPACE_CHARS: dict[str, str | None] = {
    "thin-nonbreaking": THIN_NBSP,
    "nonbreaking": NBSP,
    "ordinary": " ",
    "none": None,
}

# Tokens written by older profile files.
_LEGACY_SPACE_TOKENS = {"~<": "thin-nonbreaking", "~S": "nonbreaking", " ": "ordinary", "": "none"}

LITERAL_SEPARATORS = (",", ".", "'", "’")


def normalize_space_token(value: object) -> object:
    if value is None:
        return "none"
    if isinstance(value, str) and value in _LEGACY_SPACE_TOKENS:
        return _LEGACY_SPACE_TOKENS[value]
    return value


def space_char(token: str | None) -> str | None:
    """Map a space token to its character; ``None`` means no space."""

    if token is None:
        return None
    return SPACE_CHARS[token]


class _ProfileSection(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class ProfileMeta(_ProfileSection):
    id: str
    label: str = ""


class PunctuationRules(_ProfileSection):
    space_before_colon: SpaceToken = Field("none", alias="spaceBeforeColon")
    space_before_semicolon: SpaceToken = Field("none", alias="spaceBeforeSemicolon")
    space_before_exclamation: SpaceToken = Field("none", alias="spaceBeforeExclamation")
    space_before_question: SpaceToken = Field("none", alias="spaceBeforeQuestion")
    space_inside_open_quote: SpaceToken = Field("none", alias="spaceInsideOpenQuote")
    space_inside_close_quote: SpaceToken = Field("none", alias="spaceInsideCloseQuote")

    @field_validator("*", mode="before")
    @classmethod
    def _legacy_tokens(cls, value: object) -> object:
        return normalize_space_token(value)


class NumberRules(_ProfileSection):
    thousands_separator: str = Field("thin-nonbreaking", alias="thousandsSeparator")
    replace_point_with_comma: bool = Field(False, alias="replacePointWithComma")
    add_thousands_spaces: bool = Field(False, alias="addThousandsSpaces")

    @field_validator("thousands_separator", mode="before")
    @classmethod
    def _separator_token(cls, value: object) -> object:
        value = normalize_space_token(value)
        if value == "none":
            raise ValueError("thousandsSeparator cannot be none")
        if value not in SPACE_CHARS and value not in LITERAL_SEPARATORS:
            raise ValueError(f"unsupported thousandsSeparator: {value!r}")
        return value

    @model_validator(mode="after")
    def _separator_differs_from_decimal_mark(self) -> NumberRules:
        if self.separator_char == self.decimal_mark:
            raise ValueError("thousandsSeparator must differ from the decimal mark")
        return self

    @property
    def separator_char(self) -> str:
        return SPACE_CHARS.get(self.thousands_separator) or self.thousands_separator

    @property
    def decimal_mark(self) -> str:
        return "," if self.replace_point_with_comma else "."


class DashRules(_ProfileSection):
    replace_cadratin_with_demi_cadratin: bool = Field(True, alias="replaceCadratinWithDemiCadratin")
    incise_space: SpaceToken = Field("none", alias="inciseSpace")

    @field_validator("incise_space", mode="before")
    @classmethod
    def _legacy_tokens(cls, value: object) -> object:
        return normalize_space_token(value)


class CenturyRules(_ProfileSection):
    enabled: bool = False
    keyword: str = "siècles?"


class ProfileData(_ProfileSection):
    """Word lists; each entry is a regex fragment."""

    mots_ordinaux: list[str] = Field(default_factory=list, alias="motsOrdinaux")
    mots_ambigus: list[str] = Field(default_factory=list, alias="motsAmbigus")
    mots_oeuvres: list[str] = Field(default_factory=list, alias="motsOeuvres")
    titres_personnes: list[str] = Field(default_factory=list, alias="titresPersonnes")
    noms_premier: list[str] = Field(default_factory=list, alias="nomsPremier")
    mots_avant_ordinaux: list[str] = Field(default_factory=list, alias="motsAvantOrdinaux")
    abreviations_refs: list[str] = Field(default_factory=list, alias="abreviationsRefs")
    abreviations_volumes: list[str] = Field(default_factory=list, alias="abreviationsVolumes")
    abreviations_temporelles: list[str] = Field(default_factory=list, alias="abreviationsTemporelles")
    abreviations_numeros: list[str] = Field(default_factory=list, alias="abreviationsNumeros")
    abreviations_direction: list[str] = Field(default_factory=list, alias="abreviationsDirection")
    titres_appellations: list[str] = Field(default_factory=list, alias="titresAppellations")
    unites_mesure: list[str] = Field(default_factory=list, alias="unitesMesure")


class LanguageProfile(_ProfileSection):
    """Locale rules read by every pass; immutable once loaded."""

    meta: ProfileMeta
    punctuation: PunctuationRules = Field(default_factory=PunctuationRules)
    numbers: NumberRules = Field(default_factory=NumberRules)
    dashes: DashRules = Field(default_factory=DashRules)
    centuries: CenturyRules = Field(default_factory=CenturyRules)
    data: ProfileData = Field(default_factory=ProfileData)

    @classmethod
    def empty(cls, profile_id: str) -> LanguageProfile:
        """Profile with every feature disabled."""

        return cls(
            meta=ProfileMeta(id=profile_id, label=""),
            dashes=DashRules(replace_cadratin_with_demi_cadratin=False),
        )

    @property
    def id(self) -> str:
        return self.meta.id

    def get(self, path: str, default: Any = None) -> Any:
        """Read a value by dotted path using the YAML key names."""

        node: Any = self.model_dump(by_alias=True)
        for key in path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def get_list(self, path: str) -> list[str]:
        value = self.get(path)
        return list(value) if isinstance(value, list) else []
