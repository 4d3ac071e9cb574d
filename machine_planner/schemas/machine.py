"""Schémas Machine et Projet / Machine and project schemas."""

from pydantic import BaseModel, ConfigDict

from machine_planner.models.machine import MachineStatus


class MachineCreate(BaseModel):
    name: str
    model: str | None = None
    status: MachineStatus = MachineStatus.ACTIVE
    location: str | None = None


class MachineRead(MachineCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int


class ProjectCreate(BaseModel):
    name: str
    description: str | None = None


class ProjectRead(ProjectCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
