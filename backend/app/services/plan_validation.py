from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core.clock import ensure_utc
from app.core.exceptions import InvalidPlanDocumentError
from app.models.schedule import Schedule
from app.schemas.schedule_planning import (
    PlanDocument,
    ScheduleValidationError,
    ShowPlanItem,
    ValidationResult,
)
from app.services.conflict_service import Interval, detect_conflicts
from app.services.entity_resolver import EntityKind, Resolution, resolve_many

logger = logging.getLogger(__name__)

ROOM_SUBJECT = "room"
MC_SUBJECT = "mc"


def parse_plan_document(raw: dict | PlanDocument | None) -> PlanDocument:
    if isinstance(raw, PlanDocument):
        return raw
    try:
        return PlanDocument.model_validate(raw or {})
    except PydanticValidationError as exc:
        raise InvalidPlanDocumentError(details={"errors": exc.errors(include_url=False)}) from exc


def _show_label(show: ShowPlanItem, index: int) -> str:
    return f"'{show.name}' (index {index})"


def _references(show: ShowPlanItem) -> list[tuple[EntityKind, str]]:
    refs: list[tuple[EntityKind, str]] = [(EntityKind.client, show.client_id)]
    if show.studio_room_id:
        refs.append((EntityKind.studio_room, show.studio_room_id))
    refs.append((EntityKind.show_type, show.show_type_id))
    refs.append((EntityKind.show_status, show.show_status_id))
    refs.append((EntityKind.show_standard, show.show_standard_id))
    refs.extend((EntityKind.mc, item.mc_id) for item in show.mcs)
    refs.extend((EntityKind.platform, item.platform_id) for item in show.platforms)
    return refs


class PlanDocumentValidator:
    """Checks a schedule's plan document against reference data and booking conflicts.

    Read-only. Every problem found is returned in a single pass instead of stopping at the
    first one, so the caller can show the complete list to the planner.
    """

    def __init__(self, db: Session):
        self.db = db

    def validate(self, schedule: Schedule, document: dict | PlanDocument | None = None) -> ValidationResult:
        plan = parse_plan_document(schedule.plan_document if document is None else document)
        shows = plan.shows

        errors: list[ScheduleValidationError] = []
        errors.extend(self._check_duplicate_temp_ids(shows))
        ordered = [show.end_time > show.start_time for show in shows]
        errors.extend(self._check_time_ranges(schedule, shows, ordered))
        errors.extend(self._check_references(schedule, shows))
        errors.extend(self._check_conflicts(shows, ordered))

        if errors:
            logger.debug("Schedule %s failed validation with %d error(s)", schedule.uid, len(errors))
        return ValidationResult(is_valid=not errors, errors=errors)

    def _check_duplicate_temp_ids(self, shows: list[ShowPlanItem]) -> list[ScheduleValidationError]:
        errors = []
        seen: dict[str, int] = {}
        for index, show in enumerate(shows):
            if show.temp_id is None:
                continue
            if show.temp_id in seen:
                errors.append(
                    ScheduleValidationError(
                        type="duplicate_temp_id",
                        message=f"Duplicate tempId '{show.temp_id}' at show index {index}",
                        show_index=index,
                        show_temp_id=show.temp_id,
                        conflicting_show_index=seen[show.temp_id],
                        conflicting_show_temp_id=show.temp_id,
                    )
                )
            else:
                seen[show.temp_id] = index
        return errors

    def _check_time_ranges(
        self, schedule: Schedule, shows: list[ShowPlanItem], ordered: list[bool]
    ) -> list[ScheduleValidationError]:
        errors = []
        range_start = ensure_utc(schedule.start_date)
        range_end = ensure_utc(schedule.end_date)
        for index, show in enumerate(shows):
            if not ordered[index]:
                errors.append(
                    ScheduleValidationError(
                        type="invalid_time_range",
                        message=f"Show {_show_label(show, index)} must end after it starts",
                        show_index=index,
                        show_temp_id=show.temp_id,
                    )
                )
            elif show.start_time < range_start or show.end_time > range_end:
                errors.append(
                    ScheduleValidationError(
                        type="invalid_time_range",
                        message=f"Show {_show_label(show, index)} falls outside the schedule date range",
                        show_index=index,
                        show_temp_id=show.temp_id,
                    )
                )
        return errors

    def _check_references(self, schedule: Schedule, shows: list[ShowPlanItem]) -> list[ScheduleValidationError]:
        wanted: dict[EntityKind, set[str]] = {}
        for show in shows:
            for kind, uid in _references(show):
                wanted.setdefault(kind, set()).add(uid)

        # One query per entity kind, regardless of how many shows reference it.
        resolutions: dict[EntityKind, Resolution] = {
            kind: resolve_many(self.db, kind, uids) for kind, uids in wanted.items()
        }

        errors = []
        schedule_client_uid = schedule.client.uid if schedule.client else None
        for index, show in enumerate(shows):
            reported: set[tuple[EntityKind, str]] = set()
            for kind, uid in _references(show):
                if (kind, uid) in reported:
                    continue
                resolution = resolutions[kind]
                if uid in resolution.deleted:
                    message = f"{kind.value} {uid} referenced by show {_show_label(show, index)} has been deleted"
                elif uid in resolution.missing:
                    message = f"{kind.value} {uid} referenced by show {_show_label(show, index)} does not exist"
                else:
                    continue
                reported.add((kind, uid))
                errors.append(
                    ScheduleValidationError(
                        type="missing_reference",
                        message=message,
                        show_index=index,
                        show_temp_id=show.temp_id,
                        entity_kind=kind.value,
                        entity_id=uid,
                    )
                )

        for index, show in enumerate(shows):
            if show.client_id in resolutions[EntityKind.client].found and show.client_id != schedule_client_uid:
                errors.append(
                    ScheduleValidationError(
                        type="client_mismatch",
                        message=(
                            f"Show {_show_label(show, index)} belongs to client {show.client_id} "
                            f"but the schedule belongs to client {schedule_client_uid}"
                        ),
                        show_index=index,
                        show_temp_id=show.temp_id,
                        entity_kind=EntityKind.client.value,
                        entity_id=show.client_id,
                    )
                )
        return errors

    def _check_conflicts(self, shows: list[ShowPlanItem], ordered: list[bool]) -> list[ScheduleValidationError]:
        intervals: list[Interval] = []
        for index, show in enumerate(shows):
            if not ordered[index]:
                continue
            if show.studio_room_id:
                intervals.append(Interval((ROOM_SUBJECT, show.studio_room_id), show.start_time, show.end_time, index))
            for mc_id in dict.fromkeys(item.mc_id for item in show.mcs):
                intervals.append(Interval((MC_SUBJECT, mc_id), show.start_time, show.end_time, index))

        errors = []
        for pair in detect_conflicts(intervals):
            subject_kind, subject_id = pair.subject
            first, second = shows[pair.first], shows[pair.second]
            if subject_kind == ROOM_SUBJECT:
                what, entity_kind = f"Studio room {subject_id}", EntityKind.studio_room
            else:
                what, entity_kind = f"MC {subject_id}", EntityKind.mc
            errors.append(
                ScheduleValidationError(
                    type="time_conflict",
                    message=(
                        f"{what} is double-booked by shows {_show_label(first, pair.first)} "
                        f"and {_show_label(second, pair.second)}"
                    ),
                    show_index=pair.first,
                    show_temp_id=first.temp_id,
                    conflicting_show_index=pair.second,
                    conflicting_show_temp_id=second.temp_id,
                    entity_kind=entity_kind.value,
                    entity_id=subject_id,
                )
            )
        return errors
