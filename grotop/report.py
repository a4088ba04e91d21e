from __future__ import annotations

from typing import Any

from .audit import SiteReport
from .check import Severity
from .render import render
from .result import Undecided, Verdict, Verified, Violated


def _status(v: Verdict) -> str:
    match v:
        case Verified():
            return "verified"
        case Violated():
            return "violated"
        case Undecided():
            return "undecided"


def format_report(report: SiteReport) -> str:
    """Human-readable report for terminal output."""
    lines = []
    lines.append(f"{report.site_name} — {report.description}")
    lines.append(
        f"  Category: {report.object_count} objects, {report.morphism_count} morphisms, "
        f"{report.pair_count} (object, sieve) pairs; universe of {report.universe_size} presheaves"
    )

    for result in report.structure:
        for diag in result.diagnostics:
            subject = f" {diag.subject}:" if diag.subject else ""
            lines.append(
                f"    - [{diag.check}] '{result.name}'{subject} {diag.message} ({diag.severity.value.upper()})"
            )

    lines.append(f"  Topology: {report.topology}")
    lines.append(f"  Its sheaves in the universe: {', '.join(report.sheaf_names) or '(none)'}")
    lines.append(f"  Left fixed points (topologies): {len(report.topologies)}")

    if report.violated:
        lines.append(f"  × {len(report.violated)} violated")
        for v in report.violated:
            lines.append(f"    - [{v.obligation}] {v.reason}")
    else:
        lines.append(f"  ✓ {report.verified_count} obligations verified")

    if report.undecided:
        lines.append(f"  ⚠ {len(report.undecided)} undecided")
        for v in report.undecided:
            lines.append(f"    - [{v.obligation}] {v.reason}")

    return "\n".join(lines)


def report_json(report: SiteReport) -> dict[str, Any]:
    """Machine-readable report."""
    return {
        "site": report.site_name,
        "description": report.description,
        "passed": report.passed,
        "well_formed": report.well_formed,
        "object_count": report.object_count,
        "morphism_count": report.morphism_count,
        "pair_count": report.pair_count,
        "universe_size": report.universe_size,
        "topology": report.topology,
        "sheaves": list(report.sheaf_names),
        "topologies": list(report.topologies),
        "structure": [
            {
                "check": d.check,
                "severity": d.severity.value,
                "name": r.name,
                "subject": d.subject,
                "message": d.message,
            }
            for r in report.structure
            for d in r.diagnostics
        ],
        "verdicts": [
            {
                "obligation": v.obligation,
                "status": _status(v),
                "reason": getattr(v, "reason", None),
            }
            for v in report.verdicts
        ],
    }


def render_markdown(report: SiteReport) -> str:
    """Markdown report from the ``report.md.j2`` template."""
    return render(
        "report.md.j2",
        report=report,
        errors=[
            (r.name, d) for r in report.structure for d in r.diagnostics if d.severity == Severity.ERROR
        ],
        rows=[(v.obligation, _status(v), getattr(v, "reason", "")) for v in report.verdicts],
    )
