"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que Base.metadata les détecte.
Import all models here so Base.metadata can detect them.
"""

from machine_planner.models.machine import Machine, MachineStatus
from machine_planner.models.project import Project
from machine_planner.models.schedule import Schedule, ScheduleStatus

__all__ = [
    "Machine",
    "MachineStatus",
    "Project",
    "Schedule",
    "ScheduleStatus",
]
