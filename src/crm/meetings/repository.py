"""Meeting repository -- async CRUD and the enrichment read path.

Provides MeetingRepository with the session_factory callable pattern: every
method opens one AsyncSession, does a single unit of work, and closes it.
Handles serialization between the MeetingModel row and the Pydantic
schemas, and resolves creator / attendee / attendee-lead names for reads.

SQLAlchemy errors are not caught here; MeetingService owns translation
into the meeting error taxonomy.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterable
from contextlib import aclosing, asynccontextmanager
from datetime import datetime, timezone

import structlog
from sqlalchemy import ColumnElement, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.meetings.models import MeetingModel
from src.crm.meetings.schemas import EnrichedMeeting, Meeting, MeetingCreate, MeetingFilter
from src.crm.models.people import Contact, Lead, User

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def display_name(first_name: str | None, last_name: str | None) -> str:
    """Join first and last name with one space; a missing part renders empty."""
    return f"{first_name or ''} {last_name or ''}"


def _as_uuids(values: Iterable[str]) -> list[uuid.UUID]:
    return [uuid.UUID(str(v)) for v in values]


def _as_utc(value: datetime | None) -> datetime | None:
    """Stored datetimes are UTC; some backends (SQLite) return them naive."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _meeting_fields(model: MeetingModel) -> dict:
    return {
        "id": model.id,
        "agenda": model.agenda,
        "attendees": _as_uuids(model.attendees_data or []),
        "attendee_leads": _as_uuids(model.attendee_leads_data or []),
        "location": model.location,
        "related": model.related,
        "date_time": _as_utc(model.date_time),
        "notes": model.notes,
        "created_by": model.created_by,
        "deleted": bool(model.deleted),
        "timestamp": _as_utc(model.timestamp),
    }


def _model_to_meeting(model: MeetingModel) -> Meeting:
    """Convert MeetingModel to Meeting schema."""
    return Meeting(**_meeting_fields(model))


def _resolve_names(
    references: list[uuid.UUID], names_by_id: dict[uuid.UUID, str]
) -> list[str]:
    """Names for references in reference order; unknown ids are skipped,
    a repeated id resolves once."""
    seen: set[uuid.UUID] = set()
    names: list[str] = []
    for ref in references:
        if ref in seen or ref not in names_by_id:
            continue
        seen.add(ref)
        names.append(names_by_id[ref])
    return names


def _filter_conditions(filters: MeetingFilter) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if filters.created_by is not None:
        conditions.append(MeetingModel.created_by == filters.created_by)
    if filters.ids:
        conditions.append(MeetingModel.id.in_(filters.ids))
    return conditions


# ── Repository ──────────────────────────────────────────────────────────────


class MeetingRepository:
    """Async persistence for meetings.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """One session from the factory, closed when the block exits."""
        async with aclosing(self._session_factory()) as sessions:
            yield await anext(sessions)

    async def create_meeting(self, data: MeetingCreate) -> Meeting:
        """Persist a new meeting.

        Args:
            data: Validated meeting fields.

        Returns:
            Meeting with the store-assigned id and timestamp.
        """
        async with self._session() as session:
            model = MeetingModel(
                agenda=data.agenda,
                attendees_data=[str(a) for a in data.attendees],
                attendee_leads_data=[str(lead) for lead in data.attendee_leads],
                location=data.location,
                related=data.related,
                date_time=data.date_time,
                notes=data.notes,
                created_by=data.created_by,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.debug("meeting.row_inserted", meeting_id=str(model.id))
            return _model_to_meeting(model)

    async def get_meeting(self, meeting_id: uuid.UUID) -> Meeting | None:
        """Get a meeting by ID, None if absent."""
        async with self._session() as session:
            stmt = select(MeetingModel).where(MeetingModel.id == meeting_id)
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_meeting(model)

    async def list_enriched(
        self,
        filters: MeetingFilter,
        *,
        exclude_deleted_creators: bool = True,
    ) -> list[EnrichedMeeting]:
        """List meetings matching filters with creator and attendee names.

        The creator is outer-joined, so meetings whose user row is missing
        still appear with no created_by_name. With exclude_deleted_creators,
        meetings whose joined creator is soft-deleted are dropped; without
        it they are kept and only lose the creator name.

        Args:
            filters: Equality filter over created_by / ids.
            exclude_deleted_creators: Apply the soft-delete filter on the
                joined user.

        Returns:
            Enriched meetings ordered by creation timestamp.
        """
        async with self._session() as session:
            stmt = (
                select(MeetingModel, User)
                .outerjoin(User, User.id == MeetingModel.created_by)
                .where(*_filter_conditions(filters))
                .order_by(MeetingModel.timestamp, MeetingModel.id)
            )
            if exclude_deleted_creators:
                stmt = stmt.where(
                    or_(User.id.is_(None), User.deleted == False)  # noqa: E712
                )
            rows = (await session.execute(stmt)).all()
            if not rows:
                return []

            contact_ids: set[uuid.UUID] = set()
            lead_ids: set[uuid.UUID] = set()
            for meeting_model, _ in rows:
                contact_ids.update(_as_uuids(meeting_model.attendees_data or []))
                lead_ids.update(_as_uuids(meeting_model.attendee_leads_data or []))

            contact_names: dict[uuid.UUID, str] = {}
            if contact_ids:
                result = await session.execute(
                    select(Contact).where(Contact.id.in_(contact_ids))
                )
                contact_names = {
                    c.id: display_name(c.first_name, c.last_name)
                    for c in result.scalars()
                }

            lead_names: dict[uuid.UUID, str] = {}
            if lead_ids:
                result = await session.execute(select(Lead).where(Lead.id.in_(lead_ids)))
                lead_names = {lead.id: lead.lead_name or "" for lead in result.scalars()}

            enriched: list[EnrichedMeeting] = []
            for meeting_model, user in rows:
                fields = _meeting_fields(meeting_model)
                creator_name = None
                if user is not None and not user.deleted:
                    creator_name = display_name(user.first_name, user.last_name)
                enriched.append(
                    EnrichedMeeting(
                        **fields,
                        created_by_name=creator_name,
                        attendee_names=_resolve_names(fields["attendees"], contact_names),
                        attendee_lead_names=_resolve_names(fields["attendee_leads"], lead_names),
                    )
                )
            return enriched

    async def delete_meeting(self, meeting_id: uuid.UUID) -> Meeting | None:
        """Delete a meeting by ID.

        Returns:
            The deleted Meeting, or None if nothing matched.
        """
        async with self._session() as session:
            stmt = select(MeetingModel).where(MeetingModel.id == meeting_id)
            model = (await session.execute(stmt)).scalar_one_or_none()
            if model is None:
                return None
            deleted = _model_to_meeting(model)
            await session.delete(model)
            await session.commit()
            return deleted

    async def delete_meetings(self, filters: MeetingFilter) -> int:
        """Delete every meeting matching filters (all meetings when empty).

        Returns:
            Number of deleted rows.
        """
        async with self._session() as session:
            stmt = delete(MeetingModel).where(*_filter_conditions(filters))
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0
