"""Meeting persistence model.

Attendee and attendee-lead references are stored as ordered JSON arrays of
UUID strings on the meeting row, so the order a meeting was created with is
the order its enriched names come back in.

No foreign key constraints (application-level referential integrity via
repository): a meeting may reference contacts, leads or a creator that no
longer exist.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, Uuid, false, func
from sqlalchemy.orm import Mapped, mapped_column

from src.crm.core.database import Base


class MeetingModel(Base):
    """Meeting record with its attendee references and creator."""

    __tablename__ = "meetings"
    __table_args__ = (
        Index("idx_meetings_created_by", "created_by"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    agenda: Mapped[str | None] = mapped_column(Text, nullable=True)
    attendees_data: Mapped[list] = mapped_column(JSON, default=list)
    attendee_leads_data: Mapped[list] = mapped_column(JSON, default=list)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    related: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
