"""Modèle Projet / Project model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from machine_planner.database import Base


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Project {self.name}>"
