"""Project timeline, rate-card and calendar helpers for generated proposals."""

from __future__ import annotations

import re
import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone

DEFAULT_DURATION_WEEKS = 4
FALLBACK_PHASE_NAME = "Project Execution"

_PHASE_PATTERN = re.compile(r"Phase\s*\d+:\s*(.*?)\s*\((\d+)-?(\d+)?\s+weeks?\)", re.IGNORECASE)
_DURATION_PATTERN = re.compile(r"\((\d+)-?(\d+)?\s+weeks?\)", re.IGNORECASE)


@dataclass
class ProjectPhase:
    name: str
    duration_weeks: int
    start_date: date
    end_date: date

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        return data


def total_duration_weeks(timeline: str | None) -> int:
    """Sum of the high estimates of every `(x-y weeks)`; DEFAULT_DURATION_WEEKS when none."""
    if not timeline:
        return DEFAULT_DURATION_WEEKS
    total = sum(int(high or low) for low, high in _DURATION_PATTERN.findall(timeline))
    return total or DEFAULT_DURATION_WEEKS


def parse_timeline(timeline: str | None, start: date) -> list[ProjectPhase]:
    """
    Turn `Phase N: Name (x-y weeks)` lines into consecutive phases.

    Each phase lasts its high estimate. Text with no recognizable phase
    becomes a single "Project Execution" phase spanning the total duration.
    """
    phases: list[ProjectPhase] = []
    cursor = start
    for name, low, high in _PHASE_PATTERN.findall(timeline or ""):
        weeks = int(high or low)
        end = cursor + timedelta(weeks=weeks)
        phases.append(ProjectPhase(name.strip().rstrip(","), weeks, cursor, end))
        cursor = end

    if not phases:
        weeks = total_duration_weeks(timeline)
        phases.append(ProjectPhase(FALLBACK_PHASE_NAME, weeks, start, start + timedelta(weeks=weeks)))
    return phases


def build_schedule(timeline: str | None, start: date) -> dict:
    phases = parse_timeline(timeline, start)
    return {
        "start_date": start.isoformat(),
        "end_date": phases[-1].end_date.isoformat(),
        "total_weeks": sum(p.duration_weeks for p in phases),
        "phases": [p.to_dict() for p in phases],
    }


def summarize_rates(resources: list[dict] | None) -> dict:
    """Aggregate hours × low/high rate across the resource list."""
    total_hours = 0.0
    low_total = 0.0
    high_total = 0.0
    for resource in resources or []:
        if not isinstance(resource, dict):
            continue
        hours = float(resource.get("hours") or 0)
        total_hours += hours
        low_total += hours * float(resource.get("lowRate") or 0)
        high_total += hours * float(resource.get("highRate") or 0)
    return {
        "role_count": len([r for r in resources or [] if isinstance(r, dict)]),
        "total_hours": total_hours,
        "low_total": round(low_total, 2),
        "high_total": round(high_total, 2),
    }


# =============================================================================
# iCalendar
# =============================================================================

def _parse_event_date(value) -> date | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _escape_ics(text: str) -> str:
    return (
        text.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")
    )


def build_ics(events: list[dict] | None, project_name: str) -> str:
    """All-day VEVENTs for each `{title, date}`; events with unparseable dates are skipped."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//RFP Response Generator//EN",
        f"X-WR-CALNAME:{_escape_ics(f'Deadlines for {project_name}')}",
    ]
    for event in events or []:
        if not isinstance(event, dict):
            continue
        start = _parse_event_date(event.get("date"))
        if start is None:
            continue
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{uuid.uuid4()}@rfp-response-generator",
                f"DTSTAMP:{stamp}",
                f"DTSTART;VALUE=DATE:{start.strftime('%Y%m%d')}",
                f"DTEND;VALUE=DATE:{(start + timedelta(days=1)).strftime('%Y%m%d')}",
                f"SUMMARY:{_escape_ics(str(event.get('title') or 'Deadline'))}",
                f"DESCRIPTION:{_escape_ics(f'Key date for project: {project_name}')}",
                "END:VEVENT",
            ]
        )
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines)
