"""
Property-based tests using Hypothesis for the command center engine.

These check invariants that must hold for ANY input the backend could send:
bucket totals, appointment ordering, alert ranking and finite KPI output.
"""

import math
from datetime import datetime, timedelta

import hypothesis.strategies as st
from hypothesis import given, settings

from opsdash.engine.alerts import AlertPolicy, AlertSynthesizer, rank_alerts
from opsdash.engine.bucketing import bucket_by_day
from opsdash.engine.correlation import correlate_appointments, latest_appointment_calls
from opsdash.engine.kpis import call_activity_kpis, system_health_kpis
from opsdash.models.derived import Alert
from opsdash.models.enums import SEVERITY_RANK, AlertSeverity
from opsdash.models.records import CallLogEntry, Contact, OperationLogEntry

NOW = datetime(2026, 10, 19, 10, 0, 0)

iso_timestamps = st.datetimes(
    min_value=datetime(2025, 1, 1), max_value=datetime(2027, 12, 31)
).map(lambda d: d.replace(microsecond=0).isoformat())

# Anything a loosely-typed backend field could hold
loose_values = st.one_of(
    st.none(),
    st.just(""),
    st.text(max_size=12),
    st.integers(min_value=-10**6, max_value=10**6),
    st.floats(allow_nan=True, allow_infinity=True),
    st.booleans(),
)


@given(
    timestamps=st.lists(st.one_of(iso_timestamps, st.none(), st.just("garbage")), max_size=60)
)
@settings(max_examples=100)
def test_prop_bucket_counts_sum_to_parseable_records(timestamps):
    """
    Invariant: day bucket counts sum to the number of records with a
    parseable timestamp, and keys are strictly ascending.
    """
    logs = [OperationLogEntry(date_time=t) for t in timestamps]
    points = bucket_by_day(logs, lambda l: l.date_time)

    parseable = sum(1 for t in timestamps if t not in (None, "garbage"))
    assert sum(p.value for p in points) == parseable
    keys = [p.key for p in points]
    assert keys == sorted(set(keys))


@given(
    dates=st.lists(st.one_of(iso_timestamps, st.just("")), min_size=1, max_size=25)
)
@settings(max_examples=100)
def test_prop_dated_appointments_precede_undated(dates):
    """Invariant: no dated appointment follows an undated one; dated ones ascend."""
    contacts = [
        Contact(contact_id=f"c_{i}", full_name=f"Contact {i}", status="Scheduled Meeting")
        for i in range(len(dates))
    ]
    calls = [
        CallLogEntry(
            contact_id=f"c_{i}",
            call_started_at="2026-10-01T10:00:00",
            calendar_appointment_date_time=d,
            calendar_appointment_url="https://cal.example.com/e" if d else None,
        )
        for i, d in enumerate(dates)
    ]
    appointments = correlate_appointments(contacts, calls)

    assert len(appointments) == len(contacts)
    flags = [a.appointment_date == "" for a in appointments]
    assert flags == sorted(flags)
    dated = [a.appointment_date for a in appointments if a.appointment_date]
    assert dated == sorted(dated)


@given(started=st.lists(st.one_of(iso_timestamps, st.none()), min_size=1, max_size=20))
@settings(max_examples=100)
def test_prop_latest_call_has_max_timestamp(started):
    """Invariant: the chosen call has the greatest call_started_at (missing as "")."""
    calls = [
        CallLogEntry(contact_id="c_1", call_started_at=s, calendar_appointment_url=f"u{i}")
        for i, s in enumerate(started)
    ]
    chosen = latest_appointment_calls(calls)["c_1"]
    assert (chosen.call_started_at or "") == max(s or "" for s in started)


@given(severities=st.lists(st.sampled_from(list(AlertSeverity)), max_size=30))
@settings(max_examples=100)
def test_prop_alert_ranking_non_decreasing_and_stable(severities):
    """Invariant: ranks never decrease, and equal severities keep input order."""
    alerts = [Alert(severity=s, icon="•", title=f"alert {i}") for i, s in enumerate(severities)]
    ranked = rank_alerts(alerts)

    ranks = [SEVERITY_RANK[a.severity] for a in ranked]
    assert ranks == sorted(ranks)
    for severity in AlertSeverity:
        titles = [a.title for a in ranked if a.severity == severity]
        expected = [a.title for a in alerts if a.severity == severity]
        assert titles == expected


@given(
    expiry_offsets=st.lists(st.integers(min_value=-60, max_value=60), max_size=10),
    statuses=st.lists(st.sampled_from(["success", "error", "warning", ""]), max_size=30),
)
@settings(max_examples=50)
def test_prop_synthesizer_summary_consistent(expiry_offsets, statuses):
    """Invariant: count and has_critical always agree with the alert list."""
    from opsdash.models.records import ExpenseRecord

    expenses = [
        ExpenseRecord(name=f"svc{i}", expiration_date=(NOW + timedelta(days=o)).date().isoformat())
        for i, o in enumerate(expiry_offsets)
    ]
    logs = [OperationLogEntry(status=s or None) for s in statuses]
    summary = AlertSynthesizer(AlertPolicy()).synthesize(expenses=expenses, logs=logs, now=NOW)

    assert summary.count == len(summary.alerts)
    assert summary.has_critical == any(a.severity == AlertSeverity.CRITICAL for a in summary.alerts)


@given(
    rows=st.lists(
        st.fixed_dictionaries(
            {
                "status": loose_values,
                "cost": loose_values,
                "tokens": loose_values,
                "call_successful": loose_values,
                "duration_ms": loose_values,
                "combined_cost": loose_values,
            }
        ),
        max_size=20,
    )
)
@settings(max_examples=100)
def test_prop_kpis_never_render_nan_or_infinity(rows):
    """Invariant: KPI values parse from any row and never show NaN/Infinity."""
    logs = [OperationLogEntry.model_validate(r) for r in rows]
    calls = [CallLogEntry.model_validate(r) for r in rows]

    for card in system_health_kpis(logs) + call_activity_kpis(calls):
        for text in (card.value, card.trend_label):
            assert "nan" not in text.lower()
            assert "inf" not in text.lower()

    for log in logs:
        assert log.cost is None or math.isfinite(log.cost)
