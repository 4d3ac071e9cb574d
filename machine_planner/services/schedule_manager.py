"""
Cycle de vie des charges / Schedule entry lifecycle.

Creation, modification, saisie des heures reelles, suppression. Chaque mutation
reussie declenche exactement un `on_change` (reconstruction de la grille affichee) ;
la grille n'est jamais patchee localement.
"""

import logging
from datetime import date
from typing import Any, Awaitable, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from machine_planner.config import settings
from machine_planner.errors import NotFoundError, ValidationError
from machine_planner.schemas.schedule import (
    ActualHoursLog,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
)
from machine_planner.services.schedule_storage import ScheduleStorage, bounded
from machine_planner.services.week_window import WeekWindowService

log = logging.getLogger(__name__)

ChangeHook = Callable[[], Awaitable[None]]

# Champs qui ne peuvent pas etre remis a NULL / Fields that cannot be cleared
NON_NULLABLE_FIELDS = ("date", "planned_hours", "status")


def validate_input(schema: type[BaseModel], data: BaseModel | dict[str, Any]):
    """Valider une entree avec pydantic / Validate input with pydantic.

    Les erreurs pydantic deviennent des ValidationError du moteur.
    """
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid {schema.__name__}: {details}") from exc


class ScheduleManager:
    """Mutations d'une charge / Single entry mutations."""

    def __init__(
        self,
        storage: ScheduleStorage,
        on_change: ChangeHook | None = None,
        timeout: float | None = None,
        delete_missing_ok: bool | None = None,
    ):
        self.storage = storage
        self.on_change = on_change
        self.timeout = settings.STORAGE_TIMEOUT_SECONDS if timeout is None else timeout
        self.delete_missing_ok = settings.DELETE_MISSING_OK if delete_missing_ok is None else delete_missing_ok

    async def _changed(self) -> None:
        if self.on_change is not None:
            await self.on_change()

    # ─── Lecture / Reads ───

    async def get(self, schedule_id: int) -> ScheduleRead:
        return await bounded(self.storage.get_assignment(schedule_id), self.timeout)

    async def list_between(
        self, start: date | str, end: date | str, machine_id: int | None = None
    ) -> list[ScheduleRead]:
        """Charges sur une plage de dates / Entries over a date range."""
        start_day = WeekWindowService.parse_date(start)
        end_day = WeekWindowService.parse_date(end)
        if start_day > end_day:
            raise ValidationError(f"start_date {start_day} is after end_date {end_day}")
        return await bounded(
            self.storage.fetch_assignments_between(start_day, end_day, machine_id), self.timeout
        )

    # ─── Mutations ───

    async def create(self, data: ScheduleCreate | dict[str, Any]) -> ScheduleRead:
        """Creer une charge / Create an entry."""
        payload = validate_input(ScheduleCreate, data)
        created = await bounded(self.storage.create_assignment(payload.model_dump()), self.timeout)
        log.info("Schedule %s created on machine %s for %s", created.id, created.machine_id, created.date)
        await self._changed()
        return created

    async def update(
        self,
        schedule_id: int,
        data: ScheduleUpdate | dict[str, Any],
        expected_version: int | None = None,
    ) -> ScheduleRead:
        """
        Mise a jour partielle / Partial update.
        Seuls les champs fournis sont appliques ; machine_id n'est pas modifiable.
        """
        payload = validate_input(ScheduleUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        version = changes.pop("expected_version", None)
        if expected_version is None:
            expected_version = version
        if not changes:
            raise ValidationError("No fields to update")
        for field in NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")

        updated = await bounded(
            self.storage.update_assignment(schedule_id, changes, expected_version), self.timeout
        )
        log.info("Schedule %s updated: %s", schedule_id, ", ".join(sorted(changes)))
        await self._changed()
        return updated

    async def log_actual_hours(
        self, schedule_id: int, hours: float, expected_version: int | None = None
    ) -> ScheduleRead:
        """
        Saisir les heures reelles / Log actual hours.
        Ne touche que actual_hours, le statut n'est pas modifie.
        """
        payload = validate_input(ActualHoursLog, {"hours": hours, "expected_version": expected_version})
        updated = await bounded(
            self.storage.update_assignment(
                schedule_id, {"actual_hours": payload.hours}, payload.expected_version
            ),
            self.timeout,
        )
        log.info("Schedule %s actual hours logged: %s", schedule_id, payload.hours)
        await self._changed()
        return updated

    async def delete(
        self,
        schedule_id: int,
        missing_ok: bool | None = None,
        expected_version: int | None = None,
    ) -> bool:
        """
        Supprimer une charge / Delete an entry.
        Retourne False si l'entree etait deja absente et missing_ok est actif.
        """
        if missing_ok is None:
            missing_ok = self.delete_missing_ok
        try:
            await bounded(self.storage.delete_assignment(schedule_id, expected_version), self.timeout)
        except NotFoundError:
            if not missing_ok:
                raise
            log.info("Schedule %s already deleted", schedule_id)
            return False
        log.info("Schedule %s deleted", schedule_id)
        await self._changed()
        return True
