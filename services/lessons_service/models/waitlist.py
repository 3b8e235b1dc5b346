from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.lessons_service.models.enums import WaitlistStatus, enum_values
from sqlalchemy import DateTime, Index, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship


class WaitlistEntry(Base):
    """A swimmer queued for the next opening in any lesson."""

    __tablename__ = "waitlist"
    __table_args__ = (
        # At most one active entry per swimmer
        Index(
            "uq_waitlist_active_swimmer",
            "swimmer_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    swimmer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("swimmers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[WaitlistStatus] = mapped_column(
        SAEnum(
            WaitlistStatus,
            name="waitlist_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=WaitlistStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    # 1-based rank among active entries; meaningless once inactive
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    registration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    swimmer = relationship("Swimmer", lazy="selectin")

    def __repr__(self):
        return (
            f"<WaitlistEntry {self.id} Swimmer={self.swimmer_id} "
            f"Status={self.status} Position={self.position}>"
        )
