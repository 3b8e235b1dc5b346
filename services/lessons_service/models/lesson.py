from datetime import date, datetime, time
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import JSON, Boolean, CheckConstraint, Date, DateTime
from sqlalchemy import ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# LESSON MODELS
# ============================================================================


class Lesson(Base):
    """A recurring class: a date range, a weekday set and a daily time window."""

    __tablename__ = "lessons"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_lesson_date_range"),
        CheckConstraint("max_slots >= 1", name="ck_lesson_max_slots_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Institutional wall-clock times; end is exclusive for overlap checks
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    # Weekday names, e.g. ["Monday", "Wednesday"]
    meeting_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    max_slots: Mapped[int] = mapped_column(Integer, nullable=False)
    # Canonical MM/DD/YYYY strings on which the lesson does not meet
    exception_dates: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list, server_default="[]"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    enrollments = relationship(
        "Enrollment",
        back_populates="lesson",
        order_by="Enrollment.registration_date",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return (
            f"<Lesson {self.id} {self.start_date}..{self.end_date} "
            f"{self.meeting_days} {self.start_time}-{self.end_time}>"
        )


class Enrollment(Base):
    """A swimmer's registration into a lesson; identity is (swimmer_id, lesson_id)."""

    __tablename__ = "swimmer_lessons"

    swimmer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("swimmers.id", ondelete="CASCADE"), primary_key=True
    )
    lesson_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lessons.id", ondelete="CASCADE"), primary_key=True
    )
    preferred_instructor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("instructors.id", ondelete="SET NULL"), nullable=True
    )
    assigned_instructor_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("instructors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    instructor_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Canonical MM/DD/YYYY strings the swimmer will be absent
    missing_dates: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list, server_default="[]"
    )
    payment_status: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, server_default="false"
    )
    registration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    lesson = relationship("Lesson", back_populates="enrollments")
    swimmer = relationship("Swimmer", lazy="selectin")
    assigned_instructor = relationship(
        "Instructor", foreign_keys=[assigned_instructor_id], lazy="selectin"
    )
    preferred_instructor = relationship(
        "Instructor", foreign_keys=[preferred_instructor_id], lazy="selectin"
    )

    def __repr__(self):
        return f"<Enrollment Swimmer={self.swimmer_id} Lesson={self.lesson_id}>"
