from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.client import Client
from app.models.mc import Mc
from app.models.platform import Platform
from app.models.show import Show
from app.models.show_reference import ShowStandard, ShowStatus, ShowType
from app.models.studio_room import StudioRoom
from app.models.user import User


class EntityKind(str, Enum):
    client = "Client"
    studio_room = "StudioRoom"
    mc = "MC"
    platform = "Platform"
    show_type = "ShowType"
    show_status = "ShowStatus"
    show_standard = "ShowStandard"
    show = "Show"


_MODELS = {
    EntityKind.client: Client,
    EntityKind.studio_room: StudioRoom,
    EntityKind.mc: Mc,
    EntityKind.platform: Platform,
    EntityKind.show_type: ShowType,
    EntityKind.show_status: ShowStatus,
    EntityKind.show_standard: ShowStandard,
    EntityKind.show: Show,
}


@dataclass
class Resolution:
    """Outcome of a batch lookup by external id."""

    found: dict = field(default_factory=dict)
    deleted: set[str] = field(default_factory=set)
    missing: set[str] = field(default_factory=set)

    @property
    def unresolved(self) -> set[str]:
        return self.deleted | self.missing


def resolve_many(db: Session, kind: EntityKind, uids: Iterable[str]) -> Resolution:
    """Look up every uid of one kind with a single query.

    Rows that exist but are soft-deleted are reported separately from ids that match nothing.
    """
    wanted = {uid for uid in uids if uid}
    result = Resolution()
    if not wanted:
        return result

    model = _MODELS[kind]
    rows = db.execute(select(model).where(model.uid.in_(wanted))).scalars().all()
    for row in rows:
        if row.deleted_at is not None:
            result.deleted.add(row.uid)
        else:
            result.found[row.uid] = row
    result.missing = wanted - set(result.found) - result.deleted
    return result


def resolve_one(db: Session, kind: EntityKind, uid: str):
    model = _MODELS[kind]
    row = db.execute(select(model).where(model.uid == uid, model.deleted_at.is_(None))).scalar_one_or_none()
    if row is None:
        raise NotFoundError(kind.value, uid)
    return row


def require_all(db: Session, kind: EntityKind, uids: Iterable[str]) -> dict:
    """Batch-resolve and raise ``NotFoundError`` for the first unresolved id (in sorted order)."""
    resolution = resolve_many(db, kind, uids)
    unresolved = sorted(resolution.unresolved)
    if unresolved:
        raise NotFoundError(kind.value, unresolved[0])
    return resolution.found


def resolve_user(db: Session, uid: str) -> User | None:
    return db.execute(select(User).where(User.uid == uid)).scalar_one_or_none()
