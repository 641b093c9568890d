"""Human, JSON and YAML rendering of validation, check and diff results."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import yaml
from rich.console import Console
from rich.markup import escape

from repo_contract.checks.types import CheckResult, DiffReport, DiffResult, DiffType, Report, Value
from repo_contract.contract.types import Rule, Severity
from repo_contract.schemas.validator import SchemaError, ValidationReport

ICONS = {
    Severity.ERROR: "[red]✗[/red]",
    Severity.WARNING: "[yellow]⚠[/yellow]",
    Severity.INFO: "[blue]ℹ[/blue]",
}
PASS_ICON = "[green]✓[/green]"

SECTION_TITLES = {
    Rule.REQUIRED_FILES: "Required Files",
    Rule.BRANCH_PROTECTION: "Branch Protection",
}


def to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def to_yaml(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def format_value(value: Value) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + ", ".join(value) + "]"
    return str(value)


# validate


def validation_to_dict(reports: Sequence[ValidationReport]) -> dict[str, Any]:
    return {
        "valid": all(r.valid for r in reports),
        "files": [r.to_dict() for r in reports],
    }


def render_validation(console: Console, reports: Sequence[ValidationReport]) -> None:
    errors = 0
    for report in reports:
        if report.valid:
            console.print(f"{PASS_ICON} {escape(report.path)}: Valid")
            continue
        console.print(f"[red]✗[/red] {escape(report.path)}: Invalid")
        for issue in report.errors:
            console.print(f"  - {escape(str(issue))}")
        errors += len(report.errors)
    console.print(f"Validated {len(reports)} files, {errors} errors")


# check


def _sections(results: Sequence[CheckResult]) -> list[tuple[str, list[CheckResult]]]:
    """Group results by section title, keeping first-seen order."""
    sections: dict[str, list[CheckResult]] = {}
    for result in results:
        title = SECTION_TITLES[result.rule]
        if result.rule is Rule.BRANCH_PROTECTION:
            title = f"{title} [{result.target}]"
        sections.setdefault(title, []).append(result)
    return list(sections.items())


def _render_advisories(console: Console, advisories: Sequence[SchemaError]) -> None:
    for advisory in advisories:
        console.print(f"[yellow]⚠[/yellow] {escape(str(advisory))}")


def render_check(console: Console, report: Report) -> None:
    _render_advisories(console, report.advisories)

    for title, results in _sections(report.results):
        console.print(f"[bold]{escape(title)}[/bold]")
        for result in results:
            if result.rule is Rule.REQUIRED_FILES:
                label = result.target
            else:
                label = result.path
            if result.passed:
                console.print(f"  {PASS_ICON} {escape(label)}: {escape(result.message)}")
            else:
                console.print(f"  {ICONS[result.severity]} {escape(label)}: {escape(result.message)}")
        console.print()

    for failure in report.failures:
        console.print(f"[red]✗[/red] {failure.rule.value}: could not be checked: {escape(failure.message)}")

    summary = report.summary
    console.print(f"Summary: {summary.error} error, {summary.warning} warning, {summary.info} info")


# diff


def diff_to_dict(report: DiffReport) -> dict[str, Any]:
    return report.to_dict()


def _diff_sections(diffs: Sequence[DiffResult]) -> list[tuple[str, list[DiffResult]]]:
    sections: dict[str, list[DiffResult]] = {}
    for entry in diffs:
        title = SECTION_TITLES[entry.rule]
        if entry.rule is Rule.BRANCH_PROTECTION:
            title = f"{title} [{entry.target}]"
        sections.setdefault(title, []).append(entry)
    return list(sections.items())


def render_diff(console: Console, report: DiffReport) -> None:
    _render_advisories(console, report.advisories)

    for failure in report.failures:
        console.print(f"[red]✗[/red] {failure.rule.value}: could not be checked: {escape(failure.message)}")

    if not report.diffs:
        if not report.failures:
            console.print("No differences found.")
        return

    for title, diffs in _diff_sections(report.diffs):
        console.print(f"[bold]{escape(title)}[/bold]")
        for entry in diffs:
            if entry.type is DiffType.ARRAY_DIFF:
                console.print(f"  {escape(entry.path)}:")
                for value in entry.missing or ():
                    console.print(f"    [green]+ {escape(value)}[/green] (missing)")
                for value in entry.extra or ():
                    console.print(f"    [red]- {escape(value)}[/red] (extra)")
            elif entry.type is DiffType.MISSING_FILE:
                severity = entry.severity.value if entry.severity else Severity.ERROR.value
                console.print(f"  [green]+ {escape(entry.target)}[/green] (missing, severity: {severity})")
            else:
                console.print(
                    f"  {escape(entry.path)}: expected {escape(format_value(entry.expected))}, "
                    f"got {escape(format_value(entry.actual))}"
                )
        console.print()
