"""Modèle Machine / Machine model."""

import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from machine_planner.database import Base


class MachineStatus(str, enum.Enum):
    """Statut machine / Machine status."""
    ACTIVE = "active"
    IDLE = "idle"
    MAINTENANCE = "maintenance"
    ERROR = "error"


class Machine(Base):
    __tablename__ = "machines"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    model: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[MachineStatus] = mapped_column(Enum(MachineStatus), default=MachineStatus.ACTIVE)
    location: Mapped[str | None] = mapped_column(String(100))

    # Relations
    schedules: Mapped[list["Schedule"]] = relationship(
        back_populates="machine", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Machine {self.name}>"
