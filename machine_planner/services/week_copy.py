"""
Copie de semaine / Week copy.

Rejoue toutes les charges d'une semaine source sur une semaine cible en gardant
la machine et le jour de la semaine. Les copies repartent a zero : statut
'scheduled', pas d'heures reelles. Pas de transaction : chaque creation est
independante et le resultat detaille chaque entree.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta

from machine_planner.config import settings
from machine_planner.errors import NotFoundError, PartialBatchError, PlannerError, ValidationError
from machine_planner.models.schedule import ScheduleStatus
from machine_planner.schemas.schedule import (
    CopyConflictPolicy,
    CopyItemResult,
    CopyOutcome,
    CopyWeekResult,
    ScheduleRead,
)
from machine_planner.services.schedule_storage import ScheduleStorage, bounded
from machine_planner.services.week_window import WeekWindowService

log = logging.getLogger(__name__)

# Champs recopies tels quels / Fields copied verbatim
COPIED_FIELDS = (
    "machine_id",
    "project_id",
    "load_name",
    "start_time",
    "end_time",
    "operator_id",
    "operator_name",
    "planned_hours",
    "notes",
)


def resolve_policy(policy: CopyConflictPolicy | str | None) -> CopyConflictPolicy:
    """Politique explicite ou celle de la config / Explicit policy or the configured one."""
    raw = settings.COPY_CONFLICT_POLICY if policy is None else policy
    try:
        return CopyConflictPolicy(raw)
    except ValueError:
        raise ValidationError(f"Unknown copy conflict policy: {raw!r}")


def copy_payload(source: ScheduleRead, target_date: date) -> dict:
    """Donnees de la copie / Data for the copied entry."""
    payload = {field: getattr(source, field) for field in COPIED_FIELDS}
    payload["date"] = target_date
    payload["status"] = ScheduleStatus.SCHEDULED
    return payload


class WeekCopyOperator:
    """Replique une semaine sur une autre / Replicates one week onto another."""

    def __init__(self, storage: ScheduleStorage, timeout: float | None = None):
        self.storage = storage
        self.timeout = settings.STORAGE_TIMEOUT_SECONDS if timeout is None else timeout

    async def copy_week(
        self,
        source_week_start: date | str,
        target_week_start: date | str,
        policy: CopyConflictPolicy | str | None = None,
        allow_partial: bool = True,
    ) -> CopyWeekResult:
        source_start = WeekWindowService.week_start(source_week_start)
        target_start = WeekWindowService.week_start(target_week_start)
        if source_start == target_start:
            raise ValidationError("Source and target weeks are the same")
        policy = resolve_policy(policy)
        # Valider la fenetre cible avant tout appel / Validate the target window before any call
        WeekWindowService.week_dates(target_start)

        sources = await bounded(self.storage.fetch_assignments_for_week(source_start), self.timeout)
        result = CopyWeekResult(
            source_week_start=source_start, target_week_start=target_start, policy=policy
        )

        # Creneaux cibles (machine, date) de chaque copie / Target (machine, date) slot of each copy
        planned = []
        for source in sources:
            offset = WeekWindowService.day_offset(source_start, source.date)
            planned.append((source, target_start + timedelta(days=offset)))

        occupied: dict[tuple[int, date], list[int]] = defaultdict(list)
        if policy != CopyConflictPolicy.APPEND:
            existing = await bounded(self.storage.fetch_assignments_for_week(target_start), self.timeout)
            for entry in existing:
                occupied[(entry.machine_id, entry.date)].append(entry.id)

        failed_slots: dict[tuple[int, date], str] = {}
        if policy == CopyConflictPolicy.REPLACE:
            slots = {(source.machine_id, target_date) for source, target_date in planned}
            failed_slots = await self._clear_slots(slots, occupied)

        for source, target_date in planned:
            slot = (source.machine_id, target_date)
            item = CopyItemResult(
                source_id=source.id,
                machine_id=source.machine_id,
                target_date=target_date,
                outcome=CopyOutcome.FAILED,
            )
            if slot in failed_slots:
                item.error = failed_slots[slot]
            elif policy == CopyConflictPolicy.SKIP_OCCUPIED and occupied.get(slot):
                item.outcome = CopyOutcome.SKIPPED
            else:
                try:
                    created = await bounded(
                        self.storage.create_assignment(copy_payload(source, target_date)), self.timeout
                    )
                except PlannerError as exc:
                    log.warning("Copy of schedule %s to %s failed: %s", source.id, target_date, exc.message)
                    item.error = exc.message
                else:
                    item.outcome = CopyOutcome.CREATED
                    item.created_id = created.id
            result.items.append(item)

        log.info(
            "Week %s copied to %s (%s): %d created, %d skipped, %d failed",
            source_start, target_start, policy.value,
            result.created_count, result.skipped_count, result.failed_count,
        )
        if result.failed_count and not allow_partial:
            raise PartialBatchError(result)
        return result

    async def _clear_slots(
        self, slots: set[tuple[int, date]], occupied: dict[tuple[int, date], list[int]]
    ) -> dict[tuple[int, date], str]:
        """
        Vider les creneaux cibles avant remplacement / Clear target slots before replacing.
        Retourne les creneaux qui n'ont pas pu etre vides, avec l'erreur.
        """
        failed: dict[tuple[int, date], str] = {}
        for slot in sorted(slots):
            for schedule_id in occupied.get(slot, []):
                try:
                    await bounded(self.storage.delete_assignment(schedule_id), self.timeout)
                except NotFoundError:
                    continue
                except PlannerError as exc:
                    log.warning("Could not clear schedule %s before replace: %s", schedule_id, exc.message)
                    failed[slot] = f"Could not clear existing schedule {schedule_id}: {exc.message}"
                    break
        return failed
