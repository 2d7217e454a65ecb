"""Typed failures raised by the scheduling core.

Each error knows the HTTP status it maps to and how to render itself as a
JSON body, so the API layer only needs one exception handler.
"""

from typing import Any, Dict, List, Optional


class SchedulingError(Exception):
    """Base class for every failure the scheduling services report"""

    status_code = 400
    code = "scheduling_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.detail}


class ValidationError(SchedulingError):
    """Bad input, rejected before any availability check or write"""

    status_code = 422
    code = "validation_error"

    def __init__(self, detail: str, fields: Optional[List[str]] = None):
        super().__init__(detail)
        self.fields = fields or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["fields"] = self.fields
        return body


class PastTimeError(SchedulingError):
    """Attempt to book or move into a time that has already passed"""

    status_code = 422
    code = "past_time"


class ConflictError(SchedulingError):
    """Requested interval overlaps an active reservation on the same table"""

    status_code = 409
    code = "conflict"

    def __init__(self, detail: str, conflicting: Optional[Dict[str, Any]] = None):
        super().__init__(detail)
        self.conflicting = conflicting

    @classmethod
    def for_reservation(cls, reservation) -> "ConflictError":
        # Copied out now; the rollback that follows expires the ORM row
        return cls(
            f"Table is already booked from {reservation.start_time:%H:%M} "
            f"to {reservation.end_time:%H:%M} ({reservation.customer_name})",
            conflicting={
                "id": str(reservation.id),
                "customer_name": reservation.customer_name,
                "start_time": reservation.start_time.isoformat(),
                "end_time": reservation.end_time.isoformat(),
                "status": reservation.status,
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.conflicting is not None:
            body["conflicting_reservation"] = dict(self.conflicting)
        return body


class IllegalTransitionError(SchedulingError):
    """Status change not permitted by the reservation state machine"""

    status_code = 409
    code = "illegal_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change reservation status from {current} to {requested}")
        self.current = current
        self.requested = requested


class TableInUseError(SchedulingError):
    """Table still has active reservations and cannot be deleted"""

    status_code = 409
    code = "table_in_use"


class NotFoundError(SchedulingError):
    """Id unknown within the caller's restaurant (or owned by another one)"""

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class StorageError(SchedulingError):
    """The database failed underneath an operation; safe to retry"""

    status_code = 503
    code = "storage_error"
