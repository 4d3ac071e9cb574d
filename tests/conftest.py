"""Fixtures de test / Test fixtures."""

from datetime import date, datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from machine_planner.api.deps import get_storage
from machine_planner.database import get_db, init_db, make_engine
from machine_planner.errors import ConflictError, NotFoundError, PersistenceError
from machine_planner.main import app
from machine_planner.models.schedule import ScheduleStatus
from machine_planner.rate_limit import limiter
from machine_planner.schemas.machine import MachineRead, ProjectRead
from machine_planner.schemas.schedule import ScheduleRead
from machine_planner.services.schedule_storage import SqlScheduleStorage
from machine_planner.services.week_window import WeekWindowService


class MemoryStorage:
    """Stockage en memoire avec injection de pannes / In-memory storage with failure injection."""

    def __init__(self, machines=None, projects=None):
        self.machines = machines if machines is not None else [MachineRead(id=1, name="VMC-1")]
        self.projects = projects or []
        self.rows: dict[int, ScheduleRead] = {}
        self.next_id = 1
        self.week_fetches: list[date] = []
        self.create_calls = 0
        self.fail_fetch = False
        self.fail_create_when = None  # callable(data) -> bool
        self.fail_delete_ids: set[int] = set()

    def add(self, **fields) -> ScheduleRead:
        """Inserer directement, sans compter les appels / Insert directly, without counting calls."""
        fields.setdefault("status", ScheduleStatus.SCHEDULED)
        fields.setdefault("planned_hours", 0.0)
        row = ScheduleRead(id=self.next_id, **fields)
        self.rows[row.id] = row
        self.next_id += 1
        return row

    async def fetch_assignments_for_week(self, week_start):
        self.week_fetches.append(week_start)
        if self.fail_fetch:
            raise PersistenceError("storage offline")
        dates = WeekWindowService.week_dates(week_start)
        return await self.fetch_assignments_between(dates[0], dates[-1])

    async def fetch_assignments_between(self, start, end, machine_id=None):
        return [
            row for row in self.rows.values()
            if start <= row.date <= end and (machine_id is None or row.machine_id == machine_id)
        ]

    async def get_assignment(self, schedule_id):
        if schedule_id not in self.rows:
            raise NotFoundError("Schedule", schedule_id)
        return self.rows[schedule_id]

    async def create_assignment(self, data):
        self.create_calls += 1
        if self.fail_create_when is not None and self.fail_create_when(data):
            raise PersistenceError(f"Failed to create schedule on machine {data['machine_id']}")
        if data["machine_id"] not in {m.id for m in self.machines}:
            raise PersistenceError(f"Machine {data['machine_id']} does not exist")
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        return self.add(**data, version=1, created_at=now, updated_at=now)

    async def update_assignment(self, schedule_id, changes, expected_version=None):
        row = await self.get_assignment(schedule_id)
        if expected_version is not None and row.version != expected_version:
            raise ConflictError(schedule_id, expected_version, row.version)
        updated = row.model_copy(update={**changes, "version": row.version + 1})
        self.rows[schedule_id] = updated
        return updated

    async def delete_assignment(self, schedule_id, expected_version=None):
        row = await self.get_assignment(schedule_id)
        if schedule_id in self.fail_delete_ids:
            raise PersistenceError(f"Failed to delete schedule {schedule_id}")
        if expected_version is not None and row.version != expected_version:
            raise ConflictError(schedule_id, expected_version, row.version)
        del self.rows[schedule_id]

    async def fetch_machines(self):
        return list(self.machines)

    async def fetch_projects(self):
        return list(self.projects)


@pytest.fixture
def storage():
    return MemoryStorage(
        machines=[MachineRead(id=1, name="VMC-1"), MachineRead(id=2, name="VMC-2")],
        projects=[ProjectRead(id=10, name="Bracket batch")],
    )


@pytest.fixture
async def session_factory(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_storage(session_factory):
    return SqlScheduleStorage(session_factory)


@pytest.fixture
async def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: SqlScheduleStorage(session_factory)
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
