"""Pydantic v2 schemas for the meeting domain.

Wire names are camelCase (createdBy, attendeeLeads, dateTime, ...) through
field aliases; Python code uses the snake_case attribute names.
populate_by_name lets the repository build models from attribute names.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ── Input Models ─────────────────────────────────────────────────────────────


class MeetingInput(BaseModel):
    """Raw meeting fields as submitted by a client.

    References and dateTime are accepted untyped here; MeetingService
    validates them before anything reaches the store, so a malformed
    createdBy surfaces as InvalidReference (400) rather than a request
    validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    agenda: str | None = None
    attendees: Any = Field(default_factory=list)
    attendee_leads: Any = Field(default_factory=list, alias="attendeeLeads")
    location: str | None = None
    related: str | None = None
    date_time: Any = Field(None, alias="dateTime")
    notes: str | None = None
    created_by: Any = Field(None, alias="createdBy")


class MeetingCreate(BaseModel):
    """Validated meeting data ready to persist."""

    agenda: str | None = None
    attendees: list[uuid.UUID] = Field(default_factory=list)
    attendee_leads: list[uuid.UUID] = Field(default_factory=list)
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = None
    notes: str | None = None
    created_by: uuid.UUID


class MeetingFilter(BaseModel):
    """Equality filter over the supported meeting fields.

    ids matches any of the given identifiers; an empty list means no id
    constraint.
    """

    created_by: uuid.UUID | None = None
    ids: list[uuid.UUID] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self.created_by is None and not self.ids


# ── Read Models ──────────────────────────────────────────────────────────────


class Meeting(BaseModel):
    """A persisted meeting record."""

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    agenda: str | None = None
    attendees: list[uuid.UUID] = Field(default_factory=list)
    attendee_leads: list[uuid.UUID] = Field(default_factory=list, alias="attendeeLeads")
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = Field(None, alias="dateTime")
    notes: str | None = None
    created_by: uuid.UUID = Field(alias="createdBy")
    deleted: bool = False
    timestamp: datetime | None = None


class EnrichedMeeting(Meeting):
    """Meeting with display names resolved from its references.

    created_by_name is None when the creator was not joined (missing user,
    or a soft-deleted user on the single-record view).
    """

    created_by_name: str | None = Field(None, alias="createdByName")
    attendee_names: list[str] = Field(default_factory=list, alias="attendeeNames")
    attendee_lead_names: list[str] = Field(default_factory=list, alias="attendeeLeadNames")


# ── Response Envelopes ───────────────────────────────────────────────────────


class MeetingCreatedResponse(BaseModel):
    result: Meeting


class MeetingDeletedResponse(BaseModel):
    message: str
    result: Meeting


class MeetingsDeletedResponse(BaseModel):
    message: str
    count: int
