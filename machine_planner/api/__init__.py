"""Routes API / API routes."""

from fastapi import APIRouter

from machine_planner.api import machines, schedules

api_router = APIRouter(prefix="/api")

api_router.include_router(machines.router, prefix="/machines", tags=["machines"])
api_router.include_router(machines.projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
