"""Schémas Planning / Schedule schemas: entrées, grille hebdo, copie de semaine."""

import datetime as dt
import enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from machine_planner.models.schedule import ScheduleStatus

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ─── Entrées / Entries ───

class ScheduleCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    machine_id: int
    date: dt.date
    planned_hours: float = Field(ge=0, allow_inf_nan=False)
    project_id: int | None = None
    load_name: str | None = None
    start_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    operator_id: int | None = None
    operator_name: str | None = None
    notes: str | None = None
    status: ScheduleStatus = ScheduleStatus.SCHEDULED


class ScheduleUpdate(BaseModel):
    """Mise a jour partielle / Partial update.

    machine_id et actual_hours sont refuses : deplacer une charge = supprimer + creer,
    les heures reelles passent par ActualHoursLog.
    """
    model_config = ConfigDict(extra="forbid")

    project_id: int | None = None
    date: dt.date | None = None
    start_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    operator_id: int | None = None
    operator_name: str | None = None
    load_name: str | None = None
    planned_hours: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    notes: str | None = None
    status: ScheduleStatus | None = None
    expected_version: int | None = None


class ActualHoursLog(BaseModel):
    hours: float = Field(ge=0, allow_inf_nan=False)
    expected_version: int | None = None


class ScheduleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    machine_id: int
    project_id: int | None = None
    date: dt.date
    start_time: str | None = None
    end_time: str | None = None
    operator_id: int | None = None
    operator_name: str | None = None
    load_name: str | None = None
    planned_hours: float
    actual_hours: float | None = None
    notes: str | None = None
    status: ScheduleStatus
    version: int = 1
    created_at: str | None = None
    updated_at: str | None = None
    machine_name: str | None = None
    project_name: str | None = None


# ─── Grille hebdo / Weekly grid ───

class ScheduleEntry(BaseModel):
    """Une charge telle qu'affichee dans la grille / A load as displayed in the grid."""
    id: int
    project_id: int | None = None
    project_name: str | None = None
    operator_id: int | None = None
    operator_name: str | None = None
    load_name: str | None = None
    display_name: str
    start_time: str | None = None
    end_time: str | None = None
    planned_hours: float
    actual_hours: float | None = None
    notes: str | None = None
    status: ScheduleStatus
    version: int = 1


class DaySchedule(BaseModel):
    date: dt.date
    day_name: str
    entries: list[ScheduleEntry] = []
    total_planned_hours: float = 0.0
    total_actual_hours: float = 0.0


class MachineWeekSchedule(BaseModel):
    machine_id: int
    machine_name: str
    days: list[DaySchedule]
    weekly_planned_hours: float = 0.0
    weekly_actual_hours: float = 0.0


class WeeklyScheduleResponse(BaseModel):
    week_start: dt.date
    week_end: dt.date
    machines: list[MachineWeekSchedule] = []


class WeekSummary(BaseModel):
    """Totaux toutes machines / Cross-machine totals."""
    total_planned_hours: float
    total_actual_hours: float
    completion_percent: float


# ─── Copie de semaine / Week copy ───

class CopyConflictPolicy(str, enum.Enum):
    """Que faire si la semaine cible a deja des charges / What to do when the target week already has loads."""
    APPEND = "append"
    SKIP_OCCUPIED = "skip_occupied"
    REPLACE = "replace"


class CopyOutcome(str, enum.Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


class CopyWeekRequest(BaseModel):
    source_week_start: dt.date
    target_week_start: dt.date
    policy: CopyConflictPolicy | None = None
    allow_partial: bool = True


class CopyItemResult(BaseModel):
    source_id: int
    machine_id: int
    target_date: dt.date
    outcome: CopyOutcome
    created_id: int | None = None
    error: str | None = None


class CopyWeekResult(BaseModel):
    source_week_start: dt.date
    target_week_start: dt.date
    policy: CopyConflictPolicy
    items: list[CopyItemResult] = []

    @computed_field
    @property
    def created_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == CopyOutcome.CREATED)

    @computed_field
    @property
    def skipped_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == CopyOutcome.SKIPPED)

    @computed_field
    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == CopyOutcome.FAILED)

    @property
    def created_ids(self) -> list[int]:
        return [item.created_id for item in self.items if item.created_id is not None]
