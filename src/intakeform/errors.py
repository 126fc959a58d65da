from __future__ import annotations


class IntakeError(Exception):
    """Base error; ``message`` is safe to show to API clients."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(IntakeError):
    status_code = 400

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class NotFoundError(IntakeError):
    status_code = 404


class InvalidIdError(NotFoundError):
    pass


class StoreError(IntakeError):
    status_code = 500


class ConfigError(Exception):
    pass
