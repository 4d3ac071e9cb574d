"""Routes Machines et Projets / Machine and project API routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from machine_planner.database import get_db
from machine_planner.models import Machine, Project
from machine_planner.schemas.machine import MachineCreate, MachineRead, ProjectCreate, ProjectRead

router = APIRouter()
projects_router = APIRouter()


@router.get("/", response_model=list[MachineRead])
async def list_machines(db: AsyncSession = Depends(get_db)):
    """Lister les machines par nom / List machines by name."""
    result = await db.execute(select(Machine).order_by(Machine.name))
    return result.scalars().all()


@router.get("/{machine_id}", response_model=MachineRead)
async def get_machine(machine_id: int, db: AsyncSession = Depends(get_db)):
    machine = await db.get(Machine, machine_id)
    if not machine:
        raise HTTPException(status_code=404, detail="Machine not found")
    return machine


@router.post("/", response_model=MachineRead, status_code=201)
async def create_machine(data: MachineCreate, db: AsyncSession = Depends(get_db)):
    """Creer une machine / Create machine."""
    existing = await db.execute(select(Machine).where(Machine.name == data.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Machine name already exists")
    machine = Machine(**data.model_dump())
    db.add(machine)
    await db.flush()
    await db.refresh(machine)
    return machine


@router.delete("/{machine_id}", status_code=204)
async def delete_machine(machine_id: int, db: AsyncSession = Depends(get_db)):
    """Supprimer une machine et ses charges / Delete machine and its schedules."""
    machine = await db.get(Machine, machine_id)
    if not machine:
        raise HTTPException(status_code=404, detail="Machine not found")
    await db.delete(machine)
    await db.flush()


@projects_router.get("/", response_model=list[ProjectRead])
async def list_projects(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Project).order_by(Project.name))
    return result.scalars().all()


@projects_router.post("/", response_model=ProjectRead, status_code=201)
async def create_project(data: ProjectCreate, db: AsyncSession = Depends(get_db)):
    """Creer un projet / Create project."""
    project = Project(**data.model_dump())
    db.add(project)
    await db.flush()
    await db.refresh(project)
    return project
