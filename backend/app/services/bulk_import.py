from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import AppError, unique_violation_from_integrity_error
from app.models.schedule import Schedule
from app.models.user import User
from app.schemas.bulk import (
    BulkItemResult,
    BulkOperationResult,
    BulkScheduleCreateItem,
    BulkScheduleUpdateItem,
    BulkSuccessfulItem,
)
from app.services.schedule_planning import SchedulePlanningService

logger = logging.getLogger(__name__)

KNOWN_ERROR_CODES = {"BAD_REQUEST", "CONFLICT", "NOT_FOUND"}
_STATUS_ERROR_CODES = {400: "BAD_REQUEST", 404: "NOT_FOUND", 409: "CONFLICT"}
UNKNOWN_ERROR = "UNKNOWN_ERROR"


def error_code_for(exc: AppError) -> str:
    if exc.error_code in KNOWN_ERROR_CODES:
        return exc.error_code
    return _STATUS_ERROR_CODES.get(exc.status_code, UNKNOWN_ERROR)


class BulkLimitExceededError(AppError):
    error_code = "BAD_REQUEST"

    def __init__(self, count: int, max_items: int):
        super().__init__(
            f"Bulk operations accept at most {max_items} items, got {count}",
            status_code=400,
            details={"count": count, "max_items": max_items},
        )


class BulkImportCoordinator:
    """Runs schedule writes item by item, each in its own transaction.

    A failing item is recorded and the batch carries on; earlier successes stay committed.
    """

    def __init__(self, db: Session, planning: SchedulePlanningService | None = None):
        self.db = db
        self.planning = planning or SchedulePlanningService(db)
        self.max_items = get_settings().bulk_max_items

    def _check_size(self, items: Sequence) -> None:
        if len(items) > self.max_items:
            raise BulkLimitExceededError(len(items), self.max_items)

    def _run(
        self,
        items: Sequence,
        operation: Callable[[object], Schedule],
        client_of: Callable[[object], str | None],
        schedule_of: Callable[[object], str | None],
    ) -> BulkOperationResult:
        results: list[BulkItemResult] = []
        successful_items: list[BulkSuccessfulItem] = []

        for index, item in enumerate(items):
            item_key = item.item_key if item.item_key is not None else str(index)
            outcome = BulkItemResult(
                index=index,
                item_key=item_key,
                schedule_id=schedule_of(item),
                client_id=client_of(item),
                success=False,
            )
            try:
                schedule = operation(item)
            except AppError as exc:
                self.db.rollback()
                outcome.error = exc.message
                outcome.error_code = error_code_for(exc)
            except IntegrityError as exc:
                self.db.rollback()
                translated = unique_violation_from_integrity_error(exc)
                outcome.error = translated.message
                outcome.error_code = translated.error_code
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Database error on bulk item %s", item_key)
                outcome.error = str(exc.__class__.__name__)
                outcome.error_code = UNKNOWN_ERROR
            except Exception as exc:
                self.db.rollback()
                logger.exception("Unexpected error on bulk item %s", item_key)
                outcome.error = str(exc) or exc.__class__.__name__
                outcome.error_code = UNKNOWN_ERROR
            else:
                outcome.success = True
                outcome.schedule_id = schedule.uid
                outcome.client_id = schedule.client.uid
                successful_items.append(BulkSuccessfulItem(id=schedule.uid, version=schedule.version))
            results.append(outcome)

        successful = sum(1 for item in results if item.success)
        logger.info("Bulk operation finished: %d of %d item(s) succeeded", successful, len(results))
        return BulkOperationResult(
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=results,
            successful_items=successful_items,
        )

    def bulk_create(self, items: Sequence[BulkScheduleCreateItem], actor: User | None) -> BulkOperationResult:
        self._check_size(items)

        def create(item: BulkScheduleCreateItem) -> Schedule:
            return self.planning.create_schedule(item, actor)

        return self._run(items, create, client_of=lambda item: item.client_id, schedule_of=lambda item: None)

    def bulk_update(self, items: Sequence[BulkScheduleUpdateItem], actor: User | None) -> BulkOperationResult:
        self._check_size(items)

        def apply(item: BulkScheduleUpdateItem) -> Schedule:
            return self.planning.update_schedule(item.schedule_id, item, actor)

        return self._run(items, apply, client_of=lambda item: None, schedule_of=lambda item: item.schedule_id)
