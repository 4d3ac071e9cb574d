"""
Stockage des charges / Schedule storage.

`ScheduleStorage` est le contrat consomme par le moteur ; `SqlScheduleStorage`
l'implemente avec SQLAlchemy async. Chaque appel est sa propre unite de travail
(une session, un commit), sans atomicite entre appels.
"""

import asyncio
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Protocol, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from machine_planner.errors import ConflictError, NotFoundError, PersistenceError, StorageTimeoutError
from machine_planner.models import Machine, Project, Schedule
from machine_planner.schemas.machine import MachineRead, ProjectRead
from machine_planner.schemas.schedule import ScheduleRead
from machine_planner.services.week_window import WeekWindowService

T = TypeVar("T")


class ScheduleStorage(Protocol):
    """Contrat stockage / Storage contract."""

    async def fetch_assignments_for_week(self, week_start: date) -> list[ScheduleRead]: ...

    async def fetch_assignments_between(
        self, start: date, end: date, machine_id: int | None = None
    ) -> list[ScheduleRead]: ...

    async def get_assignment(self, schedule_id: int) -> ScheduleRead: ...

    async def create_assignment(self, data: dict[str, Any]) -> ScheduleRead: ...

    async def update_assignment(
        self, schedule_id: int, changes: dict[str, Any], expected_version: int | None = None
    ) -> ScheduleRead: ...

    async def delete_assignment(self, schedule_id: int, expected_version: int | None = None) -> None: ...

    async def fetch_machines(self) -> list[MachineRead]: ...

    async def fetch_projects(self) -> list[ProjectRead]: ...


async def bounded(awaitable: Awaitable[T], timeout: float | None) -> T:
    """Borner un appel stockage dans le temps / Bound a storage call in time.

    Un appel qui ne repond jamais devient une erreur reessayable au lieu de bloquer.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise StorageTimeoutError(f"Storage call timed out after {timeout:g}s") from exc


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _to_column(key: str, value: Any) -> Any:
    """Convertir vers le format colonne / Convert to column format."""
    if isinstance(value, date):
        return value.isoformat()
    if key == "status" and hasattr(value, "value"):
        return value.value
    return value


def _read(schedule: Schedule, machine_name: str | None, project_name: str | None) -> ScheduleRead:
    return ScheduleRead.model_validate(schedule).model_copy(
        update={"machine_name": machine_name, "project_name": project_name}
    )


class SqlScheduleStorage:
    """Stockage SQLAlchemy / SQLAlchemy-backed storage."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _detailed_query(self):
        return (
            select(Schedule, Machine.name, Project.name)
            .join(Machine, Schedule.machine_id == Machine.id)
            .outerjoin(Project, Schedule.project_id == Project.id)
        )

    async def fetch_assignments_for_week(self, week_start: date) -> list[ScheduleRead]:
        dates = WeekWindowService.week_dates(week_start)
        return await self.fetch_assignments_between(dates[0], dates[-1])

    async def fetch_assignments_between(
        self, start: date, end: date, machine_id: int | None = None
    ) -> list[ScheduleRead]:
        query = self._detailed_query().where(
            Schedule.date >= start.isoformat(), Schedule.date <= end.isoformat()
        )
        if machine_id is not None:
            query = query.where(Schedule.machine_id == machine_id)
        query = query.order_by(Schedule.date, Schedule.start_time, Schedule.id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [_read(s, m, p) for s, m, p in result.all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch schedules: {exc}") from exc

    async def get_assignment(self, schedule_id: int) -> ScheduleRead:
        try:
            async with self._session_factory() as session:
                result = await session.execute(self._detailed_query().where(Schedule.id == schedule_id))
                row = result.one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch schedule: {exc}") from exc
        if row is None:
            raise NotFoundError("Schedule", schedule_id)
        return _read(*row)

    async def create_assignment(self, data: dict[str, Any]) -> ScheduleRead:
        now = _now()
        values = {key: _to_column(key, value) for key, value in data.items()}
        try:
            async with self._session_factory() as session:
                schedule = Schedule(**values, version=1, created_at=now, updated_at=now)
                session.add(schedule)
                await session.commit()
                schedule_id = schedule.id
        except IntegrityError as exc:
            raise PersistenceError(
                f"Failed to create schedule (machine {data.get('machine_id')} or project missing?)"
            ) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to create schedule: {exc}") from exc
        return await self.get_assignment(schedule_id)

    async def _stored_version(self, session: AsyncSession, schedule_id: int) -> int:
        """Version actuelle, ou NotFoundError / Current version, or NotFoundError."""
        result = await session.execute(select(Schedule.version).where(Schedule.id == schedule_id))
        version = result.scalar_one_or_none()
        if version is None:
            raise NotFoundError("Schedule", schedule_id)
        return version

    async def update_assignment(
        self, schedule_id: int, changes: dict[str, Any], expected_version: int | None = None
    ) -> ScheduleRead:
        # Controle de version dans le WHERE de l'UPDATE : un seul ecrivain gagne /
        # Version check inside the UPDATE's WHERE: only one writer wins
        values = {key: _to_column(key, value) for key, value in changes.items()}
        statement = (
            update(Schedule)
            .where(Schedule.id == schedule_id)
            .values(**values, version=Schedule.version + 1, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        if expected_version is not None:
            statement = statement.where(Schedule.version == expected_version)
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                if result.rowcount == 0:
                    actual = await self._stored_version(session, schedule_id)
                    raise ConflictError(schedule_id, expected_version, actual)
                await session.commit()
        except IntegrityError as exc:
            raise PersistenceError(f"Failed to update schedule {schedule_id} (project missing?)") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to update schedule {schedule_id}: {exc}") from exc
        return await self.get_assignment(schedule_id)

    async def delete_assignment(self, schedule_id: int, expected_version: int | None = None) -> None:
        statement = delete(Schedule).where(Schedule.id == schedule_id).execution_options(
            synchronize_session=False
        )
        if expected_version is not None:
            statement = statement.where(Schedule.version == expected_version)
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                if result.rowcount == 0:
                    actual = await self._stored_version(session, schedule_id)
                    raise ConflictError(schedule_id, expected_version, actual)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete schedule {schedule_id}: {exc}") from exc

    async def fetch_machines(self) -> list[MachineRead]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Machine).order_by(Machine.name))
                return [MachineRead.model_validate(m) for m in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch machines: {exc}") from exc

    async def fetch_projects(self) -> list[ProjectRead]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Project).order_by(Project.name))
                return [ProjectRead.model_validate(p) for p in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch projects: {exc}") from exc
