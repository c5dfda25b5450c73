"""
Appointment correlation: contacts joined with the calls that booked them.

Contacts in an appointment-eligible status are matched on ``contact_id``
with the most recent call carrying appointment details. Every eligible
contact produces exactly one Appointment; contacts without a matching call
get empty appointment fields ("time TBD") rather than being dropped.
"""

import math
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

import structlog

from opsdash.engine.coercion import parse_timestamp
from opsdash.engine.formatting import format_datetime
from opsdash.models.derived import Appointment, AppointmentView
from opsdash.models.enums import AppointmentBand
from opsdash.models.records import CallLogEntry, Contact

logger = structlog.get_logger()

DEFAULT_APPOINTMENT_STATUSES = ("Scheduled Meeting", "Appointment Scheduled")

# Appointments at most this many days out are shown as urgent
SOON_DAYS = 7


def eligible_contacts(
    contacts: Iterable[Contact],
    statuses: Sequence[str] = DEFAULT_APPOINTMENT_STATUSES,
) -> list[Contact]:
    """Contacts whose status exactly matches one of the appointment statuses."""
    allowed = set(statuses)
    return [c for c in contacts if c.status in allowed]


def latest_appointment_calls(calls: Iterable[CallLogEntry]) -> dict[str, CallLogEntry]:
    """
    Map contact_id to its most recent call carrying appointment details.

    Recency compares ``call_started_at`` as strings (ISO-8601 order), missing
    timestamps counting as "". On equal timestamps the first call seen wins.
    """
    latest: dict[str, CallLogEntry] = {}
    for call in calls:
        if not call.contact_id or not call.has_appointment:
            continue
        existing = latest.get(call.contact_id)
        if existing is None or (call.call_started_at or "") > (existing.call_started_at or ""):
            latest[call.contact_id] = call
    return latest


def merge_appointment(contact: Contact, call: Optional[CallLogEntry]) -> Appointment:
    """Merge contact identity with the appointment fields of its call (if any)."""
    return Appointment(
        name=contact.full_name or contact.company_name or "Unknown",
        company=contact.company_name or "",
        phone=contact.phone or "",
        email=contact.email or "",
        appointment_date=(call.calendar_appointment_date_time if call else None) or "",
        appointment_type=(call.calendar_appointment_type if call else None) or "Meeting",
        calendar_url=(call.calendar_appointment_url if call else None) or "",
        contact_id=contact.contact_id,
    )


def sort_appointments(appointments: Iterable[Appointment]) -> list[Appointment]:
    """
    Order appointments soonest first; undated ones trail.

    ``sorted`` is stable, so undated appointments keep their input order.
    """
    return sorted(
        appointments,
        key=lambda a: (a.appointment_date == "", a.appointment_date),
    )


def correlate_appointments(
    contacts: Sequence[Contact],
    calls: Sequence[CallLogEntry],
    statuses: Sequence[str] = DEFAULT_APPOINTMENT_STATUSES,
) -> list[Appointment]:
    """
    Build the sorted appointment list for the command center.

    Args:
        contacts: Contacts fetched for the period
        calls: Call log entries fetched for the period
        statuses: Contact statuses that count as booked

    Returns:
        One Appointment per eligible contact, soonest first, undated last
    """
    booked = eligible_contacts(contacts, statuses)
    by_contact = latest_appointment_calls(calls)
    merged = [merge_appointment(c, by_contact.get(c.contact_id or "")) for c in booked]

    logger.debug(
        "appointments_correlated",
        eligible=len(booked),
        matched=sum(1 for a in merged if a.appointment_date or a.calendar_url),
    )
    return sort_appointments(merged)


def classify_appointment(appointment: Appointment, now: datetime) -> AppointmentView:
    """
    Classify an appointment for display relative to ``now``.

    Display only: the canonical order comes from :func:`sort_appointments`.
    """
    moment = parse_timestamp(appointment.appointment_date)
    if moment is None:
        return AppointmentView(
            appointment=appointment,
            band=AppointmentBand.TBD,
            when=appointment.appointment_date or "Time TBD",
        )

    when = format_datetime(moment)
    if moment.date() == now.date():
        return AppointmentView(
            appointment=appointment, band=AppointmentBand.TODAY, days_out=0, badge="Today", when=when
        )
    if moment < now:
        return AppointmentView(
            appointment=appointment, band=AppointmentBand.PAST, badge="Past", when=when
        )

    days_out = math.ceil((moment - now) / timedelta(days=1))
    band = AppointmentBand.SOON if days_out <= SOON_DAYS else AppointmentBand.LATER
    return AppointmentView(
        appointment=appointment, band=band, days_out=days_out, badge=f"{days_out}d", when=when
    )
