from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.lessons_service.models.enums import CoverageStatus, enum_values
from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship


class CoverageRequest(Base):
    """An instructor's ask for a substitute for one swimmer on one date.

    ``requesting_instructor_id`` is the current owner of the request. It,
    ``status`` and ``covering_instructor_id`` change only through the
    transitions in ``services.lessons_service.services.coverage_state``.
    """

    __tablename__ = "coverage_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lesson_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    swimmer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("swimmers.id", ondelete="CASCADE"), nullable=True, index=True
    )
    requesting_instructor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    covering_instructor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("instructors.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[CoverageStatus] = mapped_column(
        SAEnum(
            CoverageStatus,
            name="coverage_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=CoverageStatus.PENDING,
        nullable=False,
    )
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    lesson = relationship("Lesson", lazy="selectin")
    swimmer = relationship("Swimmer", lazy="selectin")
    requesting_instructor = relationship(
        "Instructor", foreign_keys=[requesting_instructor_id], lazy="selectin"
    )
    covering_instructor = relationship(
        "Instructor", foreign_keys=[covering_instructor_id], lazy="selectin"
    )

    def __repr__(self):
        return f"<CoverageRequest {self.id} Lesson={self.lesson_id} Status={self.status}>"
