"""
Dépendances des routes / Route dependencies.
Injectées dans les routes via Depends().
"""

from machine_planner.database import async_session
from machine_planner.services.schedule_manager import ScheduleManager
from machine_planner.services.schedule_storage import ScheduleStorage, SqlScheduleStorage


def get_storage() -> ScheduleStorage:
    """Stockage des charges / Schedule storage (one session per call)."""
    return SqlScheduleStorage(async_session)


def get_manager(storage: ScheduleStorage) -> ScheduleManager:
    # HTTP sans etat : pas de grille affichee a reconstruire / Stateless HTTP: no displayed grid to rebuild
    return ScheduleManager(storage)
