"""
Planning hebdomadaire affiche / Displayed weekly planner.

Garde la semaine affichee et la derniere grille valide. Toute mutation reussie
est suivie d'une seule relecture complete de la semaine affichee
(lecture de ses propres ecritures par relecture, pas de patch local).
Si une lecture echoue, la grille precedente reste affichee.
"""

import enum
import logging
from datetime import date
from typing import Any, Callable

from machine_planner.config import settings
from machine_planner.errors import PartialBatchError, PlannerError
from machine_planner.schemas.schedule import (
    CopyConflictPolicy,
    CopyWeekResult,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
    WeeklyScheduleResponse,
    WeekSummary,
)
from machine_planner.services.schedule_grid import build_grid, week_summary
from machine_planner.services.schedule_manager import ScheduleManager
from machine_planner.services.schedule_storage import ScheduleStorage, bounded
from machine_planner.services.week_copy import WeekCopyOperator
from machine_planner.services.week_window import WeekWindowService

log = logging.getLogger(__name__)


class NavDirection(str, enum.Enum):
    PREVIOUS = "previous"
    NEXT = "next"
    CURRENT = "current"


class WeeklyPlanner:
    """Facade pour la couche presentation / Facade for the presentation layer."""

    def __init__(
        self,
        storage: ScheduleStorage,
        today: Callable[[], date] = date.today,
        timeout: float | None = None,
    ):
        self.storage = storage
        self.today = today
        self.timeout = settings.STORAGE_TIMEOUT_SECONDS if timeout is None else timeout
        self.manager = ScheduleManager(storage, on_change=self._rebuild_after_write, timeout=self.timeout)
        self.copier = WeekCopyOperator(storage, timeout=self.timeout)
        self.current_week_start: date = WeekWindowService.week_start(today())
        self.grid: WeeklyScheduleResponse | None = None
        self.last_error: PlannerError | None = None

    # ─── Lecture / Reads ───

    async def get_weekly_schedule(self, week_start: date | str | None = None) -> WeeklyScheduleResponse:
        """
        Construire la grille d'une semaine / Build the grid for a week.
        Par defaut la semaine d'aujourd'hui. En cas d'echec rien n'est modifie.
        """
        start = WeekWindowService.week_start(self.today() if week_start is None else week_start)
        schedules = await bounded(self.storage.fetch_assignments_for_week(start), self.timeout)
        machines = await bounded(self.storage.fetch_machines(), self.timeout)
        projects = await bounded(self.storage.fetch_projects(), self.timeout)

        grid = build_grid(start, schedules, machines, projects)
        self.current_week_start = start
        self.grid = grid
        self.last_error = None
        return grid

    async def navigate(self, direction: NavDirection | str) -> WeeklyScheduleResponse:
        """Semaine precedente / suivante / courante - Previous / next / current week."""
        direction = NavDirection(direction)
        if direction == NavDirection.PREVIOUS:
            target = WeekWindowService.add_weeks(self.current_week_start, -1)
        elif direction == NavDirection.NEXT:
            target = WeekWindowService.add_weeks(self.current_week_start, 1)
        else:
            target = WeekWindowService.week_start(self.today())
        return await self.get_weekly_schedule(target)

    async def refresh(self) -> WeeklyScheduleResponse:
        return await self.get_weekly_schedule(self.current_week_start)

    def summary(self) -> WeekSummary | None:
        return week_summary(self.grid) if self.grid is not None else None

    async def _rebuild_after_write(self) -> None:
        # La mutation a reussi : un echec de relecture ne doit pas la masquer
        try:
            await self.refresh()
        except PlannerError as exc:
            log.warning("Rebuild of week %s failed after write: %s", self.current_week_start, exc.message)
            self.last_error = exc

    # ─── Mutations ───

    async def create_entry(self, data: ScheduleCreate | dict[str, Any]) -> ScheduleRead:
        return await self.manager.create(data)

    async def update_entry(
        self, schedule_id: int, data: ScheduleUpdate | dict[str, Any], expected_version: int | None = None
    ) -> ScheduleRead:
        return await self.manager.update(schedule_id, data, expected_version)

    async def log_actual_hours(
        self, schedule_id: int, hours: float, expected_version: int | None = None
    ) -> ScheduleRead:
        return await self.manager.log_actual_hours(schedule_id, hours, expected_version)

    async def delete_entry(
        self, schedule_id: int, missing_ok: bool | None = None, expected_version: int | None = None
    ) -> bool:
        return await self.manager.delete(schedule_id, missing_ok, expected_version)

    async def copy_week(
        self,
        source_week_start: date | str,
        target_week_start: date | str,
        policy: CopyConflictPolicy | str | None = None,
        allow_partial: bool = True,
    ) -> CopyWeekResult:
        """
        Copier une semaine / Copy a week.
        La grille n'est relue que si la semaine cible est celle affichee.
        """
        target = WeekWindowService.week_start(target_week_start)
        try:
            result = await self.copier.copy_week(source_week_start, target, policy, allow_partial)
        except PartialBatchError:
            if target == self.current_week_start:
                await self._rebuild_after_write()
            raise
        if target == self.current_week_start:
            await self._rebuild_after_write()
        return result
