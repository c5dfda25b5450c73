"""
Record models for entities fetched from the automation backend.

Every field is optional: the backend guarantees nothing. Validators run in
"before" mode and route raw values through the coercion helpers, so a
malformed field degrades to None instead of failing validation. Unknown
fields are kept on the model (extra="allow").
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from opsdash.engine.coercion import to_bool, to_float, to_text
from opsdash.models.enums import OperationStatus


class BackendRecord(BaseModel):
    """Base for loosely-typed backend rows."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["BackendRecord"]:
        """Build a record from a raw payload row, or None when the row is not a mapping."""
        if not isinstance(raw, dict):
            return None
        return cls.model_validate(raw)


class Contact(BackendRecord):
    """A person or company moving through the sales funnel."""

    contact_id: Optional[str] = None
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    status: Optional[str] = None
    created_on: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Optional[str]:
        return to_text(v)


class CallLogEntry(BackendRecord):
    """
    One outbound/inbound call. A call may carry the appointment it booked.

    Attributes:
        call_successful: True/False when the backend reported it, None otherwise
        final_status: Terminal status reported by the telephony workflow
        call_duration_ms: Duration in milliseconds (None when unknown)
        call_cost: Cost of the call (None when unknown)
    """

    contact_id: Optional[str] = None
    call_started_at: Optional[str] = None
    created_on: Optional[str] = None
    call_successful: Optional[bool] = None
    final_status: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("final_status", "finalStatus")
    )
    call_duration_ms: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("call_duration_ms", "duration_ms")
    )
    call_cost: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("call_cost", "combined_cost")
    )
    user_sentiment: Optional[str] = None
    calendar_appointment_date_time: Optional[str] = None
    calendar_appointment_url: Optional[str] = None
    calendar_appointment_type: Optional[str] = None

    @field_validator(
        "contact_id",
        "call_started_at",
        "created_on",
        "final_status",
        "user_sentiment",
        "calendar_appointment_date_time",
        "calendar_appointment_url",
        "calendar_appointment_type",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("call_duration_ms", "call_cost", mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @field_validator("call_successful", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> Optional[bool]:
        return to_bool(v)

    @property
    def started_at(self) -> Optional[str]:
        """Call timestamp, falling back to the row creation time."""
        return self.call_started_at or self.created_on

    @property
    def has_appointment(self) -> bool:
        return bool(self.calendar_appointment_date_time or self.calendar_appointment_url)

    @property
    def failed(self) -> bool:
        """A call failed when flagged unsuccessful or ended in an error status."""
        return self.call_successful is False or self.final_status == OperationStatus.ERROR.value


class OperationLogEntry(BackendRecord):
    """One row of the backend's append-only operations audit trail."""

    date_time: Optional[str] = None
    entity: Optional[str] = None
    action: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    workflow: Optional[str] = None
    notes: Optional[str] = None
    cost: Optional[float] = None
    tokens: Optional[float] = None

    @field_validator(
        "date_time", "entity", "action", "status", "category", "workflow", "notes",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("cost", "tokens", mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @property
    def is_error(self) -> bool:
        return self.status == OperationStatus.ERROR.value


class ExpenseRecord(BackendRecord):
    """A subscription or other tracked cost."""

    name: Optional[str] = None
    cost: Optional[float] = None
    unit: Optional[str] = None
    start_date: Optional[str] = None
    expiration_date: Optional[str] = None

    @field_validator("name", "unit", "start_date", "expiration_date", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("cost", mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @property
    def unit_key(self) -> str:
        return (self.unit or "").lower()


def parse_records(model: type[BackendRecord], rows: Any) -> list:
    """
    Normalize a raw payload collection into record models.

    Non-mapping rows are dropped; a non-list payload yields an empty list.
    """
    if not isinstance(rows, list):
        return []
    records = []
    for row in rows:
        record = model.from_raw(row)
        if record is not None:
            records.append(record)
    return records
