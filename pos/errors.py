# pos/errors.py
from dataclasses import dataclass
from typing import Any


class PosError(Exception):
    """Error base del cliente POS; ``str(exc)`` es un mensaje para el usuario."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(PosError):
    def __init__(self, field: str, message: str):
        super().__init__(message, code="VALIDATION")
        self.field = field


class ConflictError(PosError):
    pass


class TransitionError(PosError):
    pass


class TransportError(PosError):
    pass


class AuthError(PosError):
    pass


class NotFoundError(PosError):
    pass


class CartError(PosError):
    pass


@dataclass(frozen=True)
class Outcome:
    """Resultado de una acción de personal, listo para mostrarse."""

    ok: bool
    message: str
    value: Any = None

    @classmethod
    def success(cls, message: str, value: Any = None) -> "Outcome":
        return cls(True, message, value)

    @classmethod
    def failure(cls, message: str) -> "Outcome":
        return cls(False, message)
