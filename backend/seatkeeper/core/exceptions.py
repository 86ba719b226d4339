"""
Domain errors.

Services raise these; the API layer maps `status_code` onto the response in a
single exception handler (see main.py).
"""
from __future__ import annotations


class ErrorMessages:
    NO_TABLE_ASSIGNED = "No table assigned"
    FORBIDDEN_FOR_TABLE = "Forbidden for this table"
    FORBIDDEN_FOR_CLUB = "Forbidden for this club"
    SEAT_CHANGED = "Seat was changed by another request, reload and retry"
    STORAGE_TIMEOUT = "Storage did not respond in time, retry"
    STORAGE_FAILURE = "Storage failure"


class SeatkeeperError(Exception):
    """Base class for all domain errors."""

    kind = "Error"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "kind": self.kind}


class NotFound(SeatkeeperError):
    kind = "NotFound"
    status_code = 404


class SeatNotFound(NotFound):
    def __init__(self, seat_id: int):
        self.seat_id = seat_id
        super().__init__(f"Seat {seat_id} not found")


class PlayerNotFound(NotFound):
    def __init__(self, player_id: int):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class TableNotFound(NotFound):
    def __init__(self, table_id: int):
        self.table_id = table_id
        super().__init__(f"Table {table_id} not found")


class SessionNotFound(NotFound):
    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class InvalidTransition(SeatkeeperError):
    kind = "InvalidTransition"
    status_code = 400


class PlayerRequired(SeatkeeperError):
    kind = "PlayerRequired"
    status_code = 400


class Conflict(SeatkeeperError):
    kind = "Conflict"
    status_code = 409

    def __init__(self, message: str = ErrorMessages.SEAT_CHANGED):
        super().__init__(message)


class SeatStateError(SeatkeeperError):
    """A seat decision would leave status and occupant out of step."""

    kind = "SeatStateError"
    status_code = 500


class StorageTimeout(SeatkeeperError):
    kind = "Timeout"
    status_code = 503

    def __init__(self, message: str = ErrorMessages.STORAGE_TIMEOUT):
        super().__init__(message)


class StorageError(SeatkeeperError):
    kind = "StorageError"
    status_code = 500

    def __init__(self, message: str = ErrorMessages.STORAGE_FAILURE):
        super().__init__(message)
