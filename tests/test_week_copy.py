"""Tests de la copie de semaine / Week copy tests."""

from datetime import date

import pytest

from machine_planner.errors import PartialBatchError, ValidationError
from machine_planner.models.schedule import ScheduleStatus
from machine_planner.schemas.schedule import CopyConflictPolicy, CopyOutcome
from machine_planner.services.week_copy import WeekCopyOperator
from machine_planner.services.week_window import WeekWindowService

SOURCE = date(2024, 6, 3)
TARGET = date(2024, 6, 10)


@pytest.fixture
def operator(storage):
    return WeekCopyOperator(storage, timeout=1.0)


def _created(storage, result):
    return [storage.rows[i] for i in result.created_ids]


async def test_copy_single_entry_scenario(operator, storage):
    source = storage.add(machine_id=1, date=SOURCE, planned_hours=8, actual_hours=None)

    result = await operator.copy_week("2024-06-03", "2024-06-10")

    assert result.created_count == 1
    (copy,) = _created(storage, result)
    assert copy.date == date(2024, 6, 10)
    assert copy.planned_hours == 8
    assert copy.actual_hours is None
    assert copy.status == ScheduleStatus.SCHEDULED
    assert copy.id != source.id


async def test_copy_preserves_shape_and_resets_execution(operator, storage):
    sources = [
        storage.add(machine_id=1, date=date(2024, 6, 3), planned_hours=8, actual_hours=7.5,
                    status=ScheduleStatus.COMPLETED, load_name="Housing", project_id=10,
                    start_time="06:00", end_time="14:00", notes="two setups", operator_name="Ana"),
        storage.add(machine_id=1, date=date(2024, 6, 5), planned_hours=4, status=ScheduleStatus.CANCELLED),
        storage.add(machine_id=2, date=date(2024, 6, 9), planned_hours=2.5, actual_hours=3.0,
                    status=ScheduleStatus.IN_PROGRESS),
    ]
    storage.add(machine_id=1, date=date(2024, 6, 10), planned_hours=1)  # deja dans la cible

    result = await operator.copy_week(SOURCE, TARGET)

    assert result.created_count == len(sources)
    assert [item.source_id for item in result.items] == [s.id for s in sources]
    by_source = {item.source_id: storage.rows[item.created_id] for item in result.items}
    for source in sources:
        copy = by_source[source.id]
        assert WeekWindowService.day_offset(TARGET, copy.date) == WeekWindowService.day_offset(SOURCE, source.date)
        assert copy.machine_id == source.machine_id
        assert copy.actual_hours is None
        assert copy.status == ScheduleStatus.SCHEDULED
        for field in ("planned_hours", "load_name", "project_id", "notes", "start_time", "end_time", "operator_name"):
            assert getattr(copy, field) == getattr(source, field)


async def test_copy_normalizes_weeks_and_handles_gaps(operator, storage):
    storage.add(machine_id=1, date=date(2024, 6, 7), planned_hours=5)
    # Semaines non-lundi, plusieurs semaines d'ecart / Non-Monday dates, weeks apart
    result = await operator.copy_week(date(2024, 6, 6), date(2024, 12, 29))
    assert result.source_week_start == SOURCE
    assert result.target_week_start == date(2024, 12, 23)
    assert _created(storage, result)[0].date == date(2024, 12, 27)


async def test_copy_empty_week(operator, storage):
    result = await operator.copy_week(SOURCE, TARGET)
    assert result.created_count == 0
    assert result.items == []


async def test_copy_onto_same_week_is_rejected(operator, storage):
    with pytest.raises(ValidationError):
        await operator.copy_week(SOURCE, date(2024, 6, 9))
    assert storage.week_fetches == []


async def test_append_duplicates_on_repeat(operator, storage):
    storage.add(machine_id=1, date=SOURCE, planned_hours=8)
    await operator.copy_week(SOURCE, TARGET, CopyConflictPolicy.APPEND)
    await operator.copy_week(SOURCE, TARGET, CopyConflictPolicy.APPEND)
    target_rows = [r for r in storage.rows.values() if r.date == TARGET]
    assert len(target_rows) == 2


async def test_skip_occupied(operator, storage):
    storage.add(machine_id=1, date=SOURCE, planned_hours=8)
    storage.add(machine_id=2, date=SOURCE, planned_hours=6)
    existing = storage.add(machine_id=1, date=TARGET, planned_hours=3)

    result = await operator.copy_week(SOURCE, TARGET, "skip_occupied")

    assert result.created_count == 1
    assert result.skipped_count == 1
    skipped = [i for i in result.items if i.outcome == CopyOutcome.SKIPPED]
    assert skipped[0].machine_id == 1
    assert storage.rows[existing.id] == existing

    # Deuxieme passage : tout est occupe / Second run: everything occupied
    again = await operator.copy_week(SOURCE, TARGET, "skip_occupied")
    assert again.created_count == 0
    assert again.skipped_count == 2


async def test_replace_clears_only_touched_slots(operator, storage):
    storage.add(machine_id=1, date=SOURCE, planned_hours=8)
    replaced = storage.add(machine_id=1, date=TARGET, planned_hours=3)
    untouched = storage.add(machine_id=2, date=TARGET, planned_hours=2)

    result = await operator.copy_week(SOURCE, TARGET, CopyConflictPolicy.REPLACE)

    assert result.created_count == 1
    assert replaced.id not in storage.rows
    assert untouched.id in storage.rows
    machine_1_target = [r for r in storage.rows.values() if r.machine_id == 1 and r.date == TARGET]
    assert [r.planned_hours for r in machine_1_target] == [8]


async def test_replace_failed_clear_skips_slot_copies(operator, storage):
    storage.add(machine_id=1, date=SOURCE, planned_hours=8)
    blocked = storage.add(machine_id=1, date=TARGET, planned_hours=3)
    storage.fail_delete_ids.add(blocked.id)

    result = await operator.copy_week(SOURCE, TARGET, CopyConflictPolicy.REPLACE)

    assert result.failed_count == 1
    assert "Could not clear" in result.items[0].error
    assert blocked.id in storage.rows


async def test_partial_failure_keeps_created_items(operator, storage):
    storage.add(machine_id=1, date=SOURCE, planned_hours=8)
    storage.add(machine_id=2, date=SOURCE, planned_hours=6)
    storage.add(machine_id=1, date=date(2024, 6, 4), planned_hours=4)
    storage.fail_create_when = lambda data: data["machine_id"] == 2

    result = await operator.copy_week(SOURCE, TARGET)

    assert result.created_count == 2
    assert result.failed_count == 1
    failed = [i for i in result.items if i.outcome == CopyOutcome.FAILED][0]
    assert failed.machine_id == 2
    assert failed.created_id is None
    assert failed.error


async def test_partial_failure_raises_when_not_allowed(operator, storage):
    storage.add(machine_id=1, date=SOURCE, planned_hours=8)
    storage.add(machine_id=2, date=SOURCE, planned_hours=6)
    storage.fail_create_when = lambda data: data["machine_id"] == 2

    with pytest.raises(PartialBatchError) as excinfo:
        await operator.copy_week(SOURCE, TARGET, allow_partial=False)

    assert excinfo.value.result.created_count == 1
    # Pas de rollback / No rollback
    assert len([r for r in storage.rows.values() if r.date == TARGET]) == 1


async def test_unknown_policy(operator):
    with pytest.raises(ValidationError):
        await operator.copy_week(SOURCE, TARGET, "merge")
