"""
Construction de la grille Machine x Jour / Machine x Day grid builder.

La grille est toujours reconstruite depuis la source, jamais patchee :
les totaux hebdo sont la somme des totaux jour, qui sont la somme des charges.
"""

from collections import defaultdict
from datetime import date

from machine_planner.schemas.machine import MachineRead, ProjectRead
from machine_planner.schemas.schedule import (
    DaySchedule,
    MachineWeekSchedule,
    ScheduleEntry,
    ScheduleRead,
    WeeklyScheduleResponse,
    WeekSummary,
)
from machine_planner.services.week_window import DAY_NAMES, WeekWindowService

UNTITLED = "Untitled"


def display_name(load_name: str | None, project_name: str | None) -> str:
    """Nom affiche : charge, sinon projet, sinon 'Untitled' / Display label fallback chain."""
    return load_name or project_name or UNTITLED


def _to_entry(schedule: ScheduleRead, project_names: dict[int, str]) -> ScheduleEntry:
    project_name = schedule.project_name
    if project_name is None and schedule.project_id is not None:
        project_name = project_names.get(schedule.project_id)
    return ScheduleEntry(
        id=schedule.id,
        project_id=schedule.project_id,
        project_name=project_name,
        operator_id=schedule.operator_id,
        operator_name=schedule.operator_name,
        load_name=schedule.load_name,
        display_name=display_name(schedule.load_name, project_name),
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        planned_hours=schedule.planned_hours,
        actual_hours=schedule.actual_hours,
        notes=schedule.notes,
        status=schedule.status,
        version=schedule.version,
    )


def build_day(day: date, entries: list[ScheduleEntry]) -> DaySchedule:
    """Une journee d'une machine avec ses totaux / One machine-day with its totals."""
    return DaySchedule(
        date=day,
        day_name=DAY_NAMES[day.weekday()],
        entries=entries,
        total_planned_hours=sum(e.planned_hours for e in entries),
        total_actual_hours=sum(e.actual_hours or 0.0 for e in entries),
    )


def build_grid(
    week_start: date,
    schedules: list[ScheduleRead],
    machines: list[MachineRead],
    projects: list[ProjectRead] | None = None,
) -> WeeklyScheduleResponse:
    """
    Construire la reponse hebdo / Build the weekly response.

    Les charges d'une meme (machine, date) gardent l'ordre du stockage.
    Les charges hors de la fenetre sont ignorees.
    """
    dates = WeekWindowService.week_dates(WeekWindowService.week_start(week_start))
    in_window = set(dates)
    project_names = {p.id: p.name for p in projects or []}

    # Regrouper par (machine, date) en gardant l'ordre / Group by (machine, date), order preserved
    slots: dict[tuple[int, date], list[ScheduleEntry]] = defaultdict(list)
    for schedule in schedules:
        if schedule.date in in_window:
            slots[(schedule.machine_id, schedule.date)].append(_to_entry(schedule, project_names))

    # Lignes : machines connues, puis machines orphelines / Rows: known machines, then orphan machines
    rows: list[tuple[int, str]] = [(m.id, m.name) for m in machines]
    known = {machine_id for machine_id, _ in rows}
    orphans = sorted({machine_id for machine_id, _ in slots} - known)
    rows.extend((machine_id, f"Machine #{machine_id}") for machine_id in orphans)

    machine_schedules = []
    for machine_id, machine_name in rows:
        days = [build_day(day, slots.get((machine_id, day), [])) for day in dates]
        machine_schedules.append(MachineWeekSchedule(
            machine_id=machine_id,
            machine_name=machine_name,
            days=days,
            weekly_planned_hours=sum(d.total_planned_hours for d in days),
            weekly_actual_hours=sum(d.total_actual_hours for d in days),
        ))

    return WeeklyScheduleResponse(week_start=dates[0], week_end=dates[-1], machines=machine_schedules)


def week_summary(grid: WeeklyScheduleResponse) -> WeekSummary:
    """Totaux toutes machines a partir des totaux machine / Cross-machine totals from per-machine totals."""
    planned = sum(m.weekly_planned_hours for m in grid.machines)
    actual = sum(m.weekly_actual_hours for m in grid.machines)
    return WeekSummary(
        total_planned_hours=planned,
        total_actual_hours=actual,
        completion_percent=(actual / planned * 100) if planned > 0 else 0.0,
    )
