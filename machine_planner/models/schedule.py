"""Modèle Planning machine / Machine schedule entry model."""

import enum

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from machine_planner.database import Base


class ScheduleStatus(str, enum.Enum):
    """Statut d'une charge / Load status."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Schedule(Base):
    """Une charge planifiee sur une machine pour un jour / One load planned on a machine for one day."""

    __tablename__ = "schedules"
    __table_args__ = (
        Index("idx_schedules_date", "date"),
        Index("idx_schedules_machine", "machine_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    machine_id: Mapped[int] = mapped_column(ForeignKey("machines.id", ondelete="CASCADE"), nullable=False)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id", ondelete="SET NULL"))
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    start_time: Mapped[str | None] = mapped_column(String(5))  # HH:MM
    end_time: Mapped[str | None] = mapped_column(String(5))  # HH:MM
    operator_id: Mapped[int | None] = mapped_column(Integer)
    operator_name: Mapped[str | None] = mapped_column(String(100))
    load_name: Mapped[str | None] = mapped_column(String(200))
    planned_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    actual_hours: Mapped[float | None] = mapped_column(Float)  # NULL = pas encore saisi / not logged yet
    notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ScheduleStatus.SCHEDULED.value)
    # Compteur de revision pour le controle optimiste / Revision counter for optimistic checks
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601
    updated_at: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601

    # Relations
    machine: Mapped["Machine"] = relationship(back_populates="schedules")
    project: Mapped["Project | None"] = relationship()

    def __repr__(self) -> str:
        return f"<Schedule machine={self.machine_id} date={self.date} load={self.load_name}>"
