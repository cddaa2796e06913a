"""Tests for timeline parsing, rate summaries and calendar export."""

from datetime import date

from app.services import timeline_service


TIMELINE = (
    "Phase 1: Discovery & Requirements (2-3 weeks)\n"
    "Phase 2: Migration (4-6 weeks)\n"
    "Phase 3: Hypercare (1 week)"
)


def test_total_duration_uses_high_estimates():
    assert timeline_service.total_duration_weeks(TIMELINE) == 10
    assert timeline_service.total_duration_weeks("Roughly a quarter") == 4
    assert timeline_service.total_duration_weeks(None) == 4


def test_phases_are_consecutive():
    phases = timeline_service.parse_timeline(TIMELINE, date(2026, 1, 5))

    assert [p.name for p in phases] == ["Discovery & Requirements", "Migration", "Hypercare"]
    assert [p.duration_weeks for p in phases] == [3, 6, 1]
    assert phases[0].start_date == date(2026, 1, 5)
    assert phases[1].start_date == phases[0].end_date
    assert phases[2].end_date == date(2026, 3, 16)


def test_unstructured_timeline_falls_back_to_one_phase():
    phases = timeline_service.parse_timeline("About (6-8 weeks) overall", date(2026, 1, 5))

    assert len(phases) == 1
    assert phases[0].name == "Project Execution"
    assert phases[0].duration_weeks == 8


def test_build_schedule_serializes_dates():
    schedule = timeline_service.build_schedule(TIMELINE, date(2026, 1, 5))

    assert schedule["start_date"] == "2026-01-05"
    assert schedule["end_date"] == "2026-03-16"
    assert schedule["total_weeks"] == 10
    assert schedule["phases"][1]["start_date"] == "2026-01-26"


def test_summarize_rates_skips_non_dict_rows():
    summary = timeline_service.summarize_rates(
        [
            {"role": "Architect", "hours": 10, "lowRate": 100, "highRate": 150},
            {"role": "Analyst", "hours": "5", "lowRate": 80, "highRate": None},
            "not a resource",
        ]
    )

    assert summary == {"role_count": 2, "total_hours": 15.0, "low_total": 1400.0, "high_total": 1500.0}
    assert timeline_service.summarize_rates(None)["role_count"] == 0


def test_ics_skips_bad_dates_and_escapes_text():
    ics = timeline_service.build_ics(
        [
            {"title": "Q&A; questions due, all vendors", "date": "2026-11-15"},
            {"title": "Sometime", "date": "TBD"},
            {"title": "Award", "date": "2027-01-10T00:00:00Z"},
        ],
        "Cloud Migration",
    )

    assert ics.startswith("BEGIN:VCALENDAR\r\n")
    assert ics.endswith("END:VCALENDAR")
    assert ics.count("BEGIN:VEVENT") == 2
    assert "SUMMARY:Q&A\\; questions due\\, all vendors" in ics
    assert "DTSTART;VALUE=DATE:20261115" in ics
    assert "DTEND;VALUE=DATE:20270111" in ics
    assert "Sometime" not in ics
