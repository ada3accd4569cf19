"""Style-trigger pass: style the first paragraph after a trigger block."""

from __future__ import annotations

import logging

from typonorm.engine.models import PassReport
from typonorm.engine.options import RunOptions, StyleTriggerOptions
from typonorm.surface.base import TextFlow, TextSurface
from typonorm.utils.events import log_event

logger = logging.getLogger("typonorm.engine")

PASS_NAME = "style_trigger"

OUTSIDE = "outside"
PENDING = "pending"


class StyleTriggerPass:
    """Apply ``target_style`` once per block of ``trigger_styles`` paragraphs.

    Each flow is scanned once in paragraph order. A trigger paragraph makes
    the scan pending; empty paragraphs keep it pending; the next non-empty,
    non-trigger paragraph gets the target style and ends the block.
    """

    def __init__(self, options: RunOptions | StyleTriggerOptions | None = None) -> None:
        if isinstance(options, RunOptions):
            options = options.style_trigger
        self.options = options or StyleTriggerOptions()

    def run(self, surface: TextSurface) -> PassReport:
        report = PassReport(name=PASS_NAME)
        target = self.options.target_style
        triggers = set(self.options.trigger_styles)

        if not self.options.enabled:
            report.skip("disabled by options")
        elif not target or not triggers:
            report.skip("no trigger or target style configured")
        elif not surface.has_paragraph_style(target):
            log_event(logger, logging.WARNING, "missing_style", pass_name=PASS_NAME, style=target)
            report.add_issue(
                "MISSING_STYLE",
                f"Paragraph style not found: {target}",
                style_name=target,
                style_kind="paragraph",
            )
            report.skip("target style missing")

        if report.skipped:
            log_event(logger, logging.INFO, "pass_skipped", pass_name=PASS_NAME, reason=report.skip_reason)
            return report

        styled = 0
        for flow in surface.flows():
            try:
                styled += self._scan_flow(flow, triggers, target, report)
            except Exception as exc:  # noqa: BLE001
                log_event(logger, logging.WARNING, "flow_failed", pass_name=PASS_NAME, flow=flow.name, error=str(exc))
                report.add_issue(
                    "FLOW_FAILED",
                    f"{flow.name}: {exc}",
                    severity="warn",
                    flow=flow.name,
                )
        report.add_changes("apply_target_style", styled)
        log_event(logger, logging.INFO, "pass_done", pass_name=PASS_NAME, changes=styled, issues=len(report.issues))
        return report

    def _scan_flow(self, flow: TextFlow, triggers: set[str], target: str, report: PassReport) -> int:
        state = OUTSIDE
        styled = 0
        for paragraph in flow.paragraphs:
            try:
                if paragraph.style in triggers:
                    state = PENDING
                    continue
                if state != PENDING or paragraph.is_empty():
                    continue
                if paragraph.style != target:
                    paragraph.style = target
                    styled += 1
                state = OUTSIDE
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.WARNING,
                    "paragraph_failed",
                    pass_name=PASS_NAME,
                    paragraph_path=paragraph.path,
                    error=str(exc),
                )
                report.add_issue(
                    "PARAGRAPH_FAILED",
                    str(exc),
                    paragraph_path=paragraph.path,
                    severity="warn",
                )
        return styled
