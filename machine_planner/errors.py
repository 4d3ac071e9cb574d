"""
Erreurs du moteur de planning / Planning engine errors.

Toutes les erreurs remontent a l'appelant, le moteur ne fait aucun retry /
Every error surfaces to the caller, the engine never retries.
"""


class PlannerError(Exception):
    """Erreur de base du planning / Base planning error."""

    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PlannerError):
    """Entree invalide, detectee avant tout appel stockage / Invalid input, caught before any storage call."""


class NotFoundError(PlannerError):
    """Entree ou machine inexistante / Nonexistent entry or machine."""

    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(PlannerError):
    """Version attendue differente de la version stockee / Expected version does not match stored version."""

    def __init__(self, schedule_id: int, expected: int, actual: int):
        super().__init__(
            f"Schedule {schedule_id} was modified concurrently (expected version {expected}, found {actual})"
        )
        self.schedule_id = schedule_id
        self.expected = expected
        self.actual = actual


class PersistenceError(PlannerError):
    """Echec du stockage / Storage failure."""


class StorageTimeoutError(PersistenceError):
    """Appel stockage trop long / Storage call timed out."""

    retryable = True


class PartialBatchError(PlannerError):
    """Copie de semaine partiellement reussie / Week copy partially succeeded.

    `result` porte le detail par entree / `result` carries the per-item detail.
    """

    def __init__(self, result):
        super().__init__(
            f"Week copy partially failed: {result.created_count} created, {result.failed_count} failed"
        )
        self.result = result
