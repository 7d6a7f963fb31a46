"""
Erreurs métier levées par les services.

Chaque erreur hérite de ValueError et porte le statut HTTP ainsi que le code
machine stable renvoyé au client. ALREADY_LOGGED est une issue attendue
(un étudiant qui scanne deux fois) : le client se base sur `code`, pas sur le statut.
"""

from typing import Any, Optional


class AttendanceError(ValueError):
    status_code = 400
    code = "ATTENDANCE_ERROR"
    payload_key = "data"

    def __init__(self, message: str, payload: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload


class NotFoundError(AttendanceError):
    """Session, section, étudiant ou QR code inexistant."""
    status_code = 404
    code = "NOT_FOUND"


class TokenNotFoundError(AttendanceError):
    """Valeur de QR code inconnue."""
    code = "INVALID_CODE"


class ForbiddenError(AttendanceError):
    """L'appelant n'a pas accès à la ressource (enseignant non assigné, autre étudiant)."""
    status_code = 403
    code = "FORBIDDEN"


class InvalidStateError(AttendanceError):
    """Transition de session interdite depuis le statut courant."""
    code = "INVALID_STATE"


class NoActiveSessionError(InvalidStateError):
    code = "NO_ACTIVE_SESSION"


class IssuanceConflictError(AttendanceError):
    """Un autre QR code a été émis pour la même session au même moment."""
    status_code = 409
    code = "ISSUANCE_CONFLICT"


class TokenExpiredError(AttendanceError):
    code = "CODE_EXPIRED"


class TokenInactiveError(AttendanceError):
    code = "CODE_INACTIVE"


class NotEnrolledError(AttendanceError):
    code = "NOT_ENROLLED"


class AlreadyLoggedError(AttendanceError):
    """Une présence existe déjà pour (étudiant, section, date)."""
    code = "ALREADY_LOGGED"
    payload_key = "attendance"
