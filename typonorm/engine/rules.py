"""Shared rule plumbing: bounded fixed-point loops and failure isolation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from typonorm.engine.models import PassReport
from typonorm.surface.base import Match, Replacement, Scope, TextSurface
from typonorm.surface.styles import find_style
from typonorm.utils.errors import ConvergenceError, MissingStyleError
from typonorm.utils.events import log_event
from typonorm.utils.patterns import Pattern

logger = logging.getLogger("typonorm.engine")

DEFAULT_MAX_ITERATIONS = 50


def fixed_point(
    surface: TextSurface,
    pattern: str | Pattern,
    replacement: Replacement,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    scope: Scope = None,
) -> int:
    """Repeat ``change_all`` until nothing changes; return the total count.

    Raises ConvergenceError when changes are still made after
    ``max_iterations`` rounds.
    """

    total = 0
    for _ in range(max_iterations):
        changed = surface.change_all(pattern, replacement, scope)
        if changed == 0:
            return total
        total += changed
    raise ConvergenceError(
        f"Substitution did not converge after {max_iterations} iterations",
        pattern=pattern if isinstance(pattern, str) else pattern.pattern,
        iterations=max_iterations,
    )


def each_match(
    report: PassReport,
    rule: str,
    matches: Iterable[Match],
    handler: Callable[[Match], bool | None],
) -> int:
    """Run ``handler`` on every match; a failing match is reported and skipped.

    Returns the number of matches the handler reported as changed (a ``None``
    result counts as a change).
    """

    changed = 0
    for match in matches:
        try:
            result = handler(match)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.WARNING,
                "match_failed",
                pass_name=report.name,
                rule=rule,
                paragraph_path=match.paragraph.path,
                error=str(exc),
            )
            report.add_issue(
                "MATCH_FAILED",
                f"{rule}: {exc}",
                rule=rule,
                paragraph_path=match.paragraph.path,
                severity="warn",
                text=match.group(0),
            )
            continue
        if result is None or result:
            changed += 1
    return changed


def report_missing_style(report: PassReport, rule: str, exc: MissingStyleError) -> None:
    log_event(logger, logging.WARNING, "missing_style", pass_name=report.name, rule=rule, style=exc.style_name)
    report.add_issue(
        "MISSING_STYLE",
        str(exc),
        rule=rule,
        style_name=exc.style_name,
        style_kind=exc.style_kind,
    )


def run_rule(report: PassReport, rule: str, func: Callable[[], int]) -> None:
    """Run one rule and record its change count or its failure."""

    try:
        count = func()
    except MissingStyleError as exc:
        report_missing_style(report, rule, exc)
        return
    except ConvergenceError as exc:
        log_event(logger, logging.ERROR, "convergence_limit", pass_name=report.name, rule=rule, iterations=exc.iterations)
        report.add_issue(
            "CONVERGENCE_LIMIT",
            str(exc),
            rule=rule,
            pattern=exc.pattern,
            iterations=exc.iterations,
        )
        return
    except Exception as exc:  # noqa: BLE001
        log_event(logger, logging.ERROR, "rule_failed", pass_name=report.name, rule=rule, error=str(exc))
        report.add_issue("RULE_FAILED", f"{rule}: {exc}", rule=rule, error_type=type(exc).__name__)
        return
    report.add_changes(rule, count)
    log_event(logger, logging.DEBUG, "rule_done", pass_name=report.name, rule=rule, changes=count)


def resolve_character_style(
    surface: TextSurface, configured: str | None, known_names: tuple[str, ...]
) -> str | None:
    """Return the configured style, or auto-detect one from ``known_names``.

    Raises MissingStyleError when a configured style does not exist.
    """

    if configured:
        if not surface.has_character_style(configured):
            raise MissingStyleError(
                f"Character style not found: {configured}",
                style_name=configured,
                style_kind="character",
            )
        return configured
    found = find_style(known_names, surface.character_styles())
    if found is None and known_names and surface.has_character_style(known_names[0]):
        return known_names[0]
    return found
