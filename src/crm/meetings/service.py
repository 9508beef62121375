"""Meeting Query Service -- validation, error translation, and enrichment.

Sits between the HTTP layer and MeetingRepository. Each public method is
one operation of the meeting API:

- create: validate references, persist, return the stored record
- list: enriched meetings matching a filter (soft-deleted creators excluded)
- view: one enriched meeting (soft-deleted creator kept, name omitted)
- delete_one / delete_many: permanent removal

Store errors (SQLAlchemy errors and driver OSErrors) are logged with full
detail and re-raised as StoreFailure so callers only ever see MeetingError
subclasses. No retries: every operation is a single attempt.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from src.crm.core.monitoring import meeting_operations_total
from src.crm.meetings.exceptions import (
    STORE_ERRORS,
    InvalidReference,
    MeetingError,
    NothingToDelete,
    NotFound,
    StoreFailure,
)
from src.crm.meetings.repository import MeetingRepository
from src.crm.meetings.schemas import (
    EnrichedMeeting,
    Meeting,
    MeetingCreate,
    MeetingFilter,
    MeetingInput,
)

logger = structlog.get_logger(__name__)


def parse_reference(field: str, value: Any) -> uuid.UUID:
    """Parse a reference value into a UUID or raise InvalidReference."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise InvalidReference(field, value)
    try:
        return uuid.UUID(value)
    except ValueError:
        raise InvalidReference(field, value)


def parse_references(field: str, values: Any) -> list[uuid.UUID]:
    """Parse a list of reference values; a non-list is InvalidReference."""
    if values is None:
        return []
    if not isinstance(values, list):
        raise InvalidReference(field, values)
    return [parse_reference(field, v) for v in values]


_datetime_adapter = TypeAdapter(datetime)


def parse_date_time(value: Any) -> datetime | None:
    """Parse dateTime into a UTC-aware datetime; naive values are UTC.

    Raises:
        ValidationError: value is not a datetime or ISO-8601 string.
    """
    if value is None:
        return None
    parsed = _datetime_adapter.validate_python(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_filter(created_by: str | None = None, ids: list[str] | None = None) -> MeetingFilter:
    """Normalize raw filter values (query parameters) into a MeetingFilter."""
    return MeetingFilter(
        created_by=parse_reference("createdBy", created_by) if created_by else None,
        ids=[parse_reference("id", i) for i in (ids or [])],
    )


class MeetingService:
    """Meeting operations over a MeetingRepository.

    Args:
        repository: Persistence adapter for meetings.
    """

    def __init__(self, repository: MeetingRepository) -> None:
        self._repository = repository

    async def create(self, data: MeetingInput) -> Meeting:
        """Validate and persist a new meeting.

        Raises:
            InvalidReference: createdBy (or an attendee reference) is not a
                well-formed identifier; nothing is persisted.
            StoreFailure: dateTime could not be cast, or the insert failed.
        """
        try:
            created_by = parse_reference("createdBy", data.created_by)
            attendees = parse_references("attendees", data.attendees)
            attendee_leads = parse_references("attendeeLeads", data.attendee_leads)
        except InvalidReference as e:
            self._record("create", e)
            logger.info("meeting.create_rejected", field=e.field)
            raise

        try:
            date_time = parse_date_time(data.date_time)
        except ValidationError as e:
            failure = StoreFailure("Failed to create meeting", e)
            self._record("create", failure)
            logger.info("meeting.create_rejected", field="dateTime")
            raise failure

        validated = MeetingCreate(
            agenda=data.agenda,
            attendees=attendees,
            attendee_leads=attendee_leads,
            location=data.location,
            related=data.related,
            date_time=date_time,
            notes=data.notes,
            created_by=created_by,
        )

        try:
            meeting = await self._repository.create_meeting(validated)
        except STORE_ERRORS as e:
            raise self._store_failure("create", "Failed to create meeting", e)

        self._record("create")
        logger.info(
            "meeting.created",
            meeting_id=str(meeting.id),
            created_by=str(meeting.created_by),
        )
        return meeting

    async def list(self, filters: MeetingFilter) -> list[EnrichedMeeting]:
        """Enriched meetings matching filters; empty list when none match.

        Raises:
            StoreFailure: The query failed.
        """
        try:
            meetings = await self._repository.list_enriched(filters)
        except STORE_ERRORS as e:
            raise self._store_failure("list", "Failed to fetch meetings", e)

        self._record("list")
        logger.debug("meeting.listed", count=len(meetings))
        return meetings

    async def view(self, meeting_id: str | uuid.UUID) -> EnrichedMeeting:
        """One enriched meeting by id.

        A meeting whose creator is soft-deleted is still returned, without
        created_by_name, unlike list() which drops it.

        Raises:
            InvalidReference: meeting_id is malformed.
            NotFound: No such meeting.
            StoreFailure: The lookup failed.
        """
        try:
            parsed_id = parse_reference("id", meeting_id)
        except InvalidReference as e:
            self._record("view", e)
            raise

        try:
            existing = await self._repository.get_meeting(parsed_id)
            if existing is None:
                raise self._not_found("view", "No data found for this meeting.", parsed_id)

            enriched = await self._repository.list_enriched(
                MeetingFilter(ids=[existing.id]),
                exclude_deleted_creators=False,
            )
        except STORE_ERRORS as e:
            raise self._store_failure("view", "Failed to fetch meeting", e)

        if not enriched:
            raise self._not_found("view", "No data found for this meeting.", parsed_id)

        self._record("view")
        return enriched[0]

    async def delete_one(self, meeting_id: str | uuid.UUID) -> Meeting:
        """Permanently delete one meeting.

        Raises:
            InvalidReference: meeting_id is malformed.
            NotFound: No such meeting (already deleted or never existed).
            StoreFailure: The delete failed.
        """
        try:
            parsed_id = parse_reference("id", meeting_id)
        except InvalidReference as e:
            self._record("delete_one", e)
            raise

        try:
            deleted = await self._repository.delete_meeting(parsed_id)
        except STORE_ERRORS as e:
            raise self._store_failure("delete_one", "Failed to delete meeting", e)

        if deleted is None:
            raise self._not_found(
                "delete_one", "Meeting not found or already deleted.", parsed_id
            )

        self._record("delete_one")
        logger.info("meeting.deleted", meeting_id=str(parsed_id))
        return deleted

    async def delete_many(self, filters: MeetingFilter) -> int:
        """Delete all meetings matching filters and return how many went.

        An empty filter matches, and deletes, every meeting.

        Raises:
            NothingToDelete: No meeting matched.
            StoreFailure: The delete failed.
        """
        try:
            count = await self._repository.delete_meetings(filters)
        except STORE_ERRORS as e:
            raise self._store_failure("delete_many", "Failed to delete meetings", e)

        if count == 0:
            error = NothingToDelete()
            self._record("delete_many", error)
            raise error

        self._record("delete_many")
        logger.info("meeting.bulk_deleted", count=count, unfiltered=filters.is_empty())
        return count

    # ── Helpers ──────────────────────────────────────────────────────────

    def _not_found(self, operation: str, message: str, meeting_id: uuid.UUID) -> NotFound:
        error = NotFound(message, context={"meeting_id": str(meeting_id)})
        self._record(operation, error)
        return error

    def _store_failure(
        self, operation: str, message: str, error: Exception
    ) -> StoreFailure:
        logger.error(
            "meeting.store_failure",
            operation=operation,
            error=str(error),
            exc_info=error,
        )
        failure = StoreFailure(message, error)
        self._record(operation, failure)
        return failure

    @staticmethod
    def _record(operation: str, error: MeetingError | None = None) -> None:
        outcome = "success" if error is None else type(error).__name__
        meeting_operations_total.labels(operation=operation, outcome=outcome).inc()
