# app/core/errors.py
from __future__ import annotations


class AppError(Exception):
    """
    Base for errors raised by the services.
    `message` is what the client sees, so keep driver/SQL detail out of it.
    """
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class PersistenceError(AppError):
    status_code = 500


class InternalError(AppError):
    status_code = 500


__all__ = [
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "PersistenceError",
    "InternalError",
]
