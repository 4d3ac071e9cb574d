"""Routes Planning hebdo / Weekly schedule API routes."""

import datetime as dt

from fastapi import APIRouter, Depends, Request, Response

from machine_planner.api.deps import get_manager, get_storage
from machine_planner.config import settings
from machine_planner.rate_limit import limiter
from machine_planner.schemas.schedule import (
    ActualHoursLog,
    CopyWeekRequest,
    CopyWeekResult,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
    WeeklyScheduleResponse,
    WeekSummary,
)
from machine_planner.services.schedule_storage import ScheduleStorage
from machine_planner.services.week_copy import WeekCopyOperator
from machine_planner.services.weekly_planner import WeeklyPlanner

router = APIRouter()


@router.get("/weekly", response_model=WeeklyScheduleResponse)
async def get_weekly_schedule(
    week_start: dt.date | None = None,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Grille Machine x Jour d'une semaine (defaut : semaine courante) / Machine x Day grid for a week."""
    return await WeeklyPlanner(storage).get_weekly_schedule(week_start)


@router.get("/weekly/summary", response_model=WeekSummary)
async def get_weekly_summary(
    week_start: dt.date | None = None,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Totaux de la semaine toutes machines / Week totals across machines."""
    planner = WeeklyPlanner(storage)
    await planner.get_weekly_schedule(week_start)
    return planner.summary()


@router.post("/copy-week", response_model=CopyWeekResult)
@limiter.limit(settings.RATE_LIMIT_COPY_WEEK)
async def copy_week(
    request: Request,
    data: CopyWeekRequest,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Copier une semaine sur une autre / Copy a week onto another."""
    return await WeekCopyOperator(storage).copy_week(
        data.source_week_start, data.target_week_start, data.policy, data.allow_partial
    )


@router.get("/", response_model=list[ScheduleRead])
async def list_schedules(
    start_date: dt.date,
    end_date: dt.date,
    machine_id: int | None = None,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Charges sur une plage de dates / Schedules over a date range."""
    return await get_manager(storage).list_between(start_date, end_date, machine_id)


@router.get("/{schedule_id}", response_model=ScheduleRead)
async def get_schedule(schedule_id: int, storage: ScheduleStorage = Depends(get_storage)):
    return await get_manager(storage).get(schedule_id)


@router.post("/", response_model=ScheduleRead, status_code=201)
async def create_schedule(data: ScheduleCreate, storage: ScheduleStorage = Depends(get_storage)):
    """Creer une charge / Create schedule entry."""
    return await get_manager(storage).create(data)


@router.put("/{schedule_id}", response_model=ScheduleRead)
async def update_schedule(
    schedule_id: int,
    data: ScheduleUpdate,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Modifier une charge (partiel) / Partially update schedule entry."""
    return await get_manager(storage).update(schedule_id, data)


@router.put("/{schedule_id}/actual-hours", response_model=ScheduleRead)
async def log_actual_hours(
    schedule_id: int,
    data: ActualHoursLog,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Saisir les heures reelles / Log actual hours."""
    return await get_manager(storage).log_actual_hours(schedule_id, data.hours, data.expected_version)


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
    schedule_id: int,
    strict: bool | None = None,
    expected_version: int | None = None,
    storage: ScheduleStorage = Depends(get_storage),
):
    """Supprimer une charge ; strict=true renvoie 404 si absente / Delete; strict=true returns 404 if missing."""
    missing_ok = None if strict is None else not strict
    await get_manager(storage).delete(schedule_id, missing_ok=missing_ok, expected_version=expected_version)
    return Response(status_code=204)
