"""Orchestration pipeline: run every pass over one surface in a fixed order."""

from __future__ import annotations

import logging

from typonorm.engine.corrections import CorrectionPipeline
from typonorm.engine.models import PassIssue, PassReport, RunReport
from typonorm.engine.numbers import NumberFormatter
from typonorm.engine.options import RunOptions
from typonorm.engine.ordinals import OrdinalCenturyFormatter
from typonorm.engine.style_trigger import StyleTriggerPass
from typonorm.profiles.models import LanguageProfile
from typonorm.surface.base import TextSurface
from typonorm.utils.errors import SurfaceUnavailableError
from typonorm.utils.events import log_event

logger = logging.getLogger("typonorm.engine")


def run_corrections(
    surface: TextSurface | None,
    profile: LanguageProfile,
    options: RunOptions | None = None,
    *,
    source: str | None = None,
    issues: list[PassIssue] | None = None,
) -> RunReport:
    """Execute corrections -> style trigger -> ordinals -> numbers.

    Raises SurfaceUnavailableError before any mutation when there is no
    surface or the surface has no flows. ``issues`` are run-level issues
    (for example a missing profile) carried into the report.
    """

    if surface is None:
        raise SurfaceUnavailableError("No document surface to correct", source=source)
    if not surface.flows():
        raise SurfaceUnavailableError("Document has no text flows", source=source)

    options = options or RunOptions()
    log_event(logger, logging.INFO, "run_started", profile_id=profile.id, source=source)

    passes: list[PassReport] = [
        CorrectionPipeline(profile, options).run(surface),
        StyleTriggerPass(options).run(surface),
        OrdinalCenturyFormatter(profile, options).run(surface),
        NumberFormatter(profile, options).run(surface),
    ]
    report = RunReport.from_passes(passes, profile_id=profile.id, source=source, issues=issues)

    log_event(
        logger,
        logging.INFO,
        "run_done",
        profile_id=profile.id,
        source=source,
        passed=report.passed,
        changes=report.change_count,
        errors=report.error_count,
        warnings=report.warning_count,
    )
    return report
