import pytest

from app.core.exceptions import NotFoundError
from app.models.schedule import Schedule, ScheduleStatus
from app.models.schedule_snapshot import SnapshotReason
from app.services import snapshot_store
from conftest import JUNE_END, JUNE_START, plan_document, plan_item


@pytest.fixture()
def schedule(db_session, seed):
    schedule = Schedule(
        name="June",
        client_id=seed.client.id,
        start_date=JUNE_START,
        end_date=JUNE_END,
        plan_document=plan_document(plan_item(seed, "a", "2026-06-02T09:00:00Z", "2026-06-02T10:00:00Z")),
        version=3,
    )
    db_session.add(schedule)
    db_session.commit()
    return schedule


def test_snapshot_copies_persisted_state_not_session_state(db_session, seed, schedule):
    persisted = dict(schedule.plan_document)
    # unflushed in-memory edit must not leak into the snapshot
    schedule.plan_document = plan_document()
    schedule.version = 99

    snapshot = snapshot_store.create_snapshot(
        db_session, schedule_id=schedule.id, reason=SnapshotReason.manual, actor=seed.user
    )

    assert snapshot.plan_document == persisted
    assert snapshot.version == 3
    assert snapshot.status == ScheduleStatus.draft.value
    assert snapshot.snapshot_reason == "manual"
    assert snapshot.created_by == seed.user.id
    db_session.rollback()


def test_snapshots_list_newest_first_with_limit(db_session, seed, schedule):
    created = []
    for reason in (SnapshotReason.auto_save, SnapshotReason.manual, SnapshotReason.pre_publish):
        created.append(
            snapshot_store.create_snapshot(db_session, schedule_id=schedule.id, reason=reason, actor=None).uid
        )
    db_session.commit()

    newest_first = snapshot_store.list_snapshots(db_session, schedule_id=schedule.id)
    assert [item.uid for item in newest_first] == list(reversed(created))

    oldest_first = snapshot_store.list_snapshots(db_session, schedule_id=schedule.id, order="asc")
    assert [item.uid for item in oldest_first] == created

    limited = snapshot_store.list_snapshots(db_session, schedule_id=schedule.id, limit=2)
    assert [item.uid for item in limited] == list(reversed(created))[:2]


def test_get_snapshot_by_uid(db_session, schedule):
    snapshot = snapshot_store.create_snapshot(
        db_session, schedule_id=schedule.id, reason=SnapshotReason.auto_save, actor=None
    )
    db_session.commit()

    assert snapshot_store.get_snapshot(db_session, snapshot.uid).id == snapshot.id
    with pytest.raises(NotFoundError):
        snapshot_store.get_snapshot(db_session, "snapshot_missing")


def test_snapshot_of_unknown_schedule_fails(db_session):
    with pytest.raises(NotFoundError):
        snapshot_store.create_snapshot(db_session, schedule_id=12345, reason=SnapshotReason.manual, actor=None)
