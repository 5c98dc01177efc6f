import re

from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    """Base class for all application exceptions."""
    error_code = "APP_ERROR"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppError):
    """Raised when a requested or referenced entity does not exist (or is soft-deleted)."""
    error_code = "NOT_FOUND"

    def __init__(self, entity_kind: str, entity_id: str):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(
            f"{entity_kind} with id {entity_id} not found",
            status_code=404,
            details={"entity": entity_kind, "id": entity_id},
        )


class VersionConflictError(AppError):
    """Raised when an optimistic version check loses against a concurrent write."""
    error_code = "CONFLICT"

    def __init__(self, expected_version: int, current_version: int | None = None):
        if current_version is None:
            message = f"Version mismatch. Expected {expected_version}, but the schedule was modified concurrently"
        else:
            message = f"Version mismatch. Expected {expected_version}, but schedule is at version {current_version}"
        super().__init__(
            message,
            status_code=409,
            details={"expected_version": expected_version, "current_version": current_version},
        )


class ValidationFailedError(AppError):
    """Raised when a plan document must be valid and is not. Carries every issue found."""
    error_code = "BAD_REQUEST"

    def __init__(self, errors: list[dict]):
        super().__init__(
            "Schedule validation failed",
            status_code=400,
            details={"errors": errors},
        )


class InvalidStateTransitionError(AppError):
    error_code = "BAD_REQUEST"

    def __init__(self, current_status: str, target_status: str, message: str | None = None):
        super().__init__(
            message or f"Cannot move schedule from {current_status} to {target_status}",
            status_code=400,
            details={"current_status": current_status, "target_status": target_status},
        )


class InvalidTimeRangeError(AppError):
    error_code = "BAD_REQUEST"

    def __init__(self, start, end, label: str = "End time must be after start time"):
        super().__init__(
            label,
            status_code=400,
            details={"start": str(start), "end": str(end)},
        )


class UniqueConstraintViolationError(AppError):
    error_code = "CONFLICT"

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message, status_code=409, details={"fields": fields or []})


class InvalidPlanDocumentError(AppError):
    error_code = "BAD_REQUEST"

    def __init__(self, message: str = "Invalid plan document structure", details: dict = None):
        super().__init__(message, status_code=400, details=details)


_SQLITE_UNIQUE_PATTERN = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")
_POSTGRES_KEY_PATTERN = re.compile(r"Key \((?P<columns>[\w, ]+)\)=")

_UNIQUE_MESSAGES: list[tuple[frozenset[str], str]] = [
    (frozenset({"show_id", "mc_id"}), "This MC is already assigned to this show"),
    (frozenset({"show_id", "platform_id"}), "This platform is already linked to this show"),
    (frozenset({"client_id", "name"}), "A schedule with this name already exists for this client"),
    (frozenset({"email"}), "This email address is already in use"),
    (frozenset({"uid"}), "A record with this ID already exists"),
]


def _unique_fields(exc: IntegrityError) -> list[str]:
    text = str(exc.orig) if exc.orig is not None else str(exc)
    match = _SQLITE_UNIQUE_PATTERN.search(text) or _POSTGRES_KEY_PATTERN.search(text)
    if match is None:
        return []
    columns = [item.strip() for item in match.group("columns").split(",") if item.strip()]
    # sqlite reports "table.column"
    return [column.rsplit(".", 1)[-1] for column in columns]


def unique_violation_from_integrity_error(exc: IntegrityError) -> UniqueConstraintViolationError:
    fields = _unique_fields(exc)
    field_set = set(fields)
    for required, message in _UNIQUE_MESSAGES:
        if required <= field_set:
            return UniqueConstraintViolationError(message, fields)
    if fields:
        return UniqueConstraintViolationError(f"A record with the same {', '.join(fields)} already exists", fields)
    return UniqueConstraintViolationError("A record with these values already exists")
