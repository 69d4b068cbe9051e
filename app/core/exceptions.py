"""
Domain errors for environment and project operations.
Each kind carries a stable HTTP status so callers can branch on it.
"""

from typing import Iterable


class AppError(Exception):
    """Base domain error."""

    status_code = 500
    name = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed input, e.g. an empty or non URL-safe name."""

    status_code = 400
    name = "ValidationError"


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = 404
    name = "NotFoundError"


class ConflictError(AppError):
    """Uniqueness violation or a deletion blocked by active references."""

    status_code = 409
    name = "ConflictError"


class PreconditionFailedError(AppError):
    """Project-level enable attempted while the environment is globally disabled."""

    status_code = 412
    name = "PreconditionFailedError"


class EnvironmentNotFoundError(NotFoundError):
    def __init__(self, name: str):
        super().__init__(f"Environment '{name}' not found")
        self.environment_name = name


class EnvironmentsNotFoundError(NotFoundError):
    def __init__(self, names: Iterable[str]):
        self.environment_names = sorted(names)
        super().__init__(
            "Environments not found: " + ", ".join(f"'{n}'" for n in self.environment_names)
        )


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: str):
        super().__init__(f"Project '{project_id}' not found")
        self.project_id = project_id
