"""Run options: which rules run and which style names they use."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CorrectionOptions(BaseModel):
    """Per-rule toggles of the correction pipeline.

    Style names left unset are auto-detected from well-known names; when
    nothing is found the styling rule does nothing.
    """

    model_config = ConfigDict(extra="forbid")

    remove_spaces_before_punctuation: bool = True
    fix_double_spaces: bool = True
    fix_typo_spaces: bool = True
    replace_dashes: bool = True
    fix_isolated_hyphens: bool = True
    fix_value_ranges: bool = True
    fix_dash_incises: bool = True
    remove_double_returns: bool = True
    remove_spaces_start_paragraph: bool = True
    remove_spaces_end_paragraph: bool = True
    remove_tabs: bool = True
    move_notes: bool = True
    apply_note_style: bool = True
    apply_italic_style: bool = True
    apply_superscript_style: bool = True
    convert_ellipsis: bool = True
    replace_apostrophes: bool = True
    note_style: str | None = None
    italic_style: str | None = None
    superscript_style: str | None = None

    def enabled(self, rule: str) -> bool:
        return bool(getattr(self, rule))


class StyleTriggerOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    trigger_styles: list[str] = Field(default_factory=list)
    target_style: str | None = None


class OrdinalOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format_centuries: bool = True
    format_ordinals: bool = True
    format_references: bool = True
    format_spaces: bool = True
    numeral_style: str | None = None
    numeral_caps_style: str | None = None
    superscript_style: str | None = None


class NumberOptions(BaseModel):
    """``None`` for ``add_spaces``/``use_comma`` defers to the profile."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    add_spaces: bool | None = None
    use_comma: bool | None = None
    exclude_years: bool = True


class RunOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    corrections: CorrectionOptions = Field(default_factory=CorrectionOptions)
    style_trigger: StyleTriggerOptions = Field(default_factory=StyleTriggerOptions)
    ordinals: OrdinalOptions = Field(default_factory=OrdinalOptions)
    numbers: NumberOptions = Field(default_factory=NumberOptions)
    max_iterations: int = Field(50, ge=1)
