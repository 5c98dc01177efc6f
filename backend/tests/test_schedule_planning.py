import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import (
    InvalidStateTransitionError,
    InvalidTimeRangeError,
    NotFoundError,
    UniqueConstraintViolationError,
    ValidationFailedError,
    VersionConflictError,
)
from app.db.base import Base
from app.models.activity_log import ActivityLog
from app.models.schedule import ScheduleStatus
from app.models.schedule_snapshot import ScheduleSnapshot
from app.models.show import Show
from app.schemas.schedule import ScheduleCreate, ScheduleUpdate
from app.schemas.schedule_planning import PlanDocument
from app.services.schedule_planning import SchedulePlanningService
from app.services.show_orchestration import ShowOrchestrationService
from conftest import JUNE_END, JUNE_START, plan_document, plan_item, seed_reference_data


@pytest.fixture()
def service(db_session):
    return SchedulePlanningService(db_session)


def new_schedule(service, seed, name="June", document=None):
    data = ScheduleCreate(
        name=name,
        client_id=seed.client.uid,
        start_date=JUNE_START,
        end_date=JUNE_END,
        plan_document=PlanDocument.model_validate(document) if document is not None else None,
    )
    return service.create_schedule(data, seed.user)


def good_document(seed):
    return plan_document(
        plan_item(
            seed,
            "morning",
            "2026-06-02T09:00:00Z",
            "2026-06-02T11:00:00Z",
            mcs=[{"mcId": seed.mcs[0].uid, "note": "lead"}, {"mcId": seed.mcs[1].uid}],
            platforms=[{"platformId": seed.platforms[0].uid, "liveStreamLink": "https://live.example/1"}],
        ),
        plan_item(
            seed,
            "evening",
            "2026-06-02T18:00:00Z",
            "2026-06-02T20:00:00Z",
            mcs=[{"mcId": seed.mcs[0].uid}],
        ),
    )


def latest_snapshot(db_session, schedule_id):
    return db_session.execute(
        select(ScheduleSnapshot)
        .where(ScheduleSnapshot.schedule_id == schedule_id)
        .order_by(ScheduleSnapshot.created_at.desc(), ScheduleSnapshot.id.desc())
        .limit(1)
    ).scalar_one_or_none()


def snapshot_count(db_session, schedule_id):
    return db_session.execute(
        select(func.count()).select_from(ScheduleSnapshot).where(ScheduleSnapshot.schedule_id == schedule_id)
    ).scalar_one()


def test_create_schedule_starts_as_empty_draft(service, seed):
    schedule = new_schedule(service, seed)

    assert schedule.uid.startswith("schedule_")
    assert schedule.status == ScheduleStatus.draft
    assert schedule.version == 1
    assert schedule.published_at is None
    assert schedule.created_by == seed.user.id
    metadata = schedule.plan_document["metadata"]
    assert metadata["totalShows"] == 0
    assert metadata["lastEditedBy"] == seed.user.uid
    assert metadata["clientName"] == "Acme Beauty"
    assert schedule.plan_document["shows"] == []


def test_create_schedule_rejects_bad_input(service, seed):
    with pytest.raises(InvalidTimeRangeError):
        service.create_schedule(
            ScheduleCreate(name="Backwards", client_id=seed.client.uid, start_date=JUNE_END, end_date=JUNE_START),
            seed.user,
        )
    with pytest.raises(NotFoundError):
        service.create_schedule(
            ScheduleCreate(name="Nobody", client_id="client_missing", start_date=JUNE_START, end_date=JUNE_END),
            seed.user,
        )


def test_schedule_name_is_unique_per_client(service, seed):
    new_schedule(service, seed, name="June")

    with pytest.raises(UniqueConstraintViolationError) as exc_info:
        new_schedule(service, seed, name="June")

    assert exc_info.value.message == "A schedule with this name already exists for this client"
    assert exc_info.value.status_code == 409


def test_update_plan_document_worked_example(service, db_session, seed):
    schedule = new_schedule(service, seed)
    uid = schedule.uid
    service.update_plan_document(uid, PlanDocument.model_validate(plan_document()), 1, seed.user)
    service.update_plan_document(uid, PlanDocument.model_validate(good_document(seed)), 2, seed.user)
    schedule = service.get_schedule(uid)
    assert schedule.version == 3
    prior = schedule.plan_document

    updated = service.update_plan_document(uid, PlanDocument.model_validate(plan_document()), 3, seed.user)

    assert updated.version == 4
    assert updated.plan_document["shows"] == []
    snapshot = latest_snapshot(db_session, updated.id)
    assert snapshot.snapshot_reason == "auto_save"
    assert snapshot.version == 3
    assert snapshot.plan_document == prior
    assert snapshot_count(db_session, updated.id) == 3

    with pytest.raises(VersionConflictError) as exc_info:
        service.update_plan_document(uid, PlanDocument.model_validate(good_document(seed)), 3, seed.user)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"expected_version": 3, "current_version": 4}
    db_session.expire_all()
    after = service.get_schedule(uid)
    assert after.version == 4
    assert after.plan_document["shows"] == []
    assert snapshot_count(db_session, after.id) == 3


def test_update_plan_document_stores_invalid_documents(service, seed):
    schedule = new_schedule(service, seed)
    broken = plan_document(plan_item(seed, "x", "2026-06-02T12:00:00Z", "2026-06-02T09:00:00Z"))

    updated = service.update_plan_document(schedule.uid, PlanDocument.model_validate(broken), 1, seed.user)

    assert updated.version == 2
    assert updated.plan_document["metadata"]["totalShows"] == 1
    assert service.validate_schedule(schedule.uid).is_valid is False


def test_publish_rejects_invalid_document_without_side_effects(service, db_session, seed):
    broken = plan_document(
        plan_item(seed, "x", "2026-06-02T12:00:00Z", "2026-06-02T09:00:00Z"),
        plan_item(seed, "y", "2026-06-03T09:00:00Z", "2026-06-03T10:00:00Z", mcs=[{"mcId": "mc_ghost"}]),
    )
    schedule = new_schedule(service, seed, document=broken)

    with pytest.raises(ValidationFailedError) as exc_info:
        service.publish_schedule(schedule.uid, 1, seed.user)

    errors = exc_info.value.details["errors"]
    assert [error["type"] for error in errors] == ["invalid_time_range", "missing_reference"]
    assert errors[1]["showTempId"] == "y"
    db_session.expire_all()
    after = service.get_schedule(schedule.uid)
    assert after.status == ScheduleStatus.draft
    assert after.version == 1
    assert after.published_at is None
    assert snapshot_count(db_session, after.id) == 0


def test_publish_materializes_shows_and_takes_pre_publish_snapshot(service, db_session, seed):
    schedule = new_schedule(service, seed, document=good_document(seed))
    prior = schedule.plan_document

    published, shows_created = service.publish_schedule(schedule.uid, 1, seed.user)

    assert shows_created == 2
    assert published.status == ScheduleStatus.published
    assert published.version == 2
    assert published.published_at is not None
    assert published.published_by == seed.user.id

    snapshot = latest_snapshot(db_session, published.id)
    assert snapshot.snapshot_reason == "pre_publish"
    assert snapshot.plan_document == prior
    assert snapshot.version == 1

    shows = db_session.execute(
        select(Show).where(Show.schedule_id == published.id).order_by(Show.start_time)
    ).scalars().all()
    assert [show.name for show in shows] == ["Show morning", "Show evening"]
    morning = shows[0]
    assert [item.mc.uid for item in morning.active_mcs] == [seed.mcs[0].uid, seed.mcs[1].uid]
    assert morning.active_mcs[0].note == "lead"
    assert [item.platform.uid for item in morning.active_platforms] == [seed.platforms[0].uid]
    assert morning.active_platforms[0].live_stream_link == "https://live.example/1"
    assert morning.meta["tempId"] == "morning"

    actions = db_session.execute(select(ActivityLog.action)).scalars().all()
    assert "schedule.publish" in actions


def test_publish_requires_draft_and_current_version(service, seed):
    schedule = new_schedule(service, seed, document=good_document(seed))

    with pytest.raises(VersionConflictError):
        service.publish_schedule(schedule.uid, 7, seed.user)

    reviewed = service.submit_for_review(schedule.uid, 1, seed.user)
    assert reviewed.status == ScheduleStatus.review
    with pytest.raises(InvalidStateTransitionError):
        service.publish_schedule(schedule.uid, 2, seed.user)

    drafted = service.return_to_draft(schedule.uid, 2, seed.user)
    assert drafted.status == ScheduleStatus.draft
    assert drafted.version == 3

    published, _ = service.publish_schedule(schedule.uid, 3, seed.user)
    assert published.version == 4
    first_published_at = published.published_at

    with pytest.raises(InvalidStateTransitionError):
        service.publish_schedule(schedule.uid, 4, seed.user)
    with pytest.raises(InvalidStateTransitionError):
        service.return_to_draft(schedule.uid, 4, seed.user)
    assert service.get_schedule(schedule.uid).published_at == first_published_at


def test_published_schedule_is_frozen(service, seed):
    schedule = new_schedule(service, seed, document=good_document(seed))
    service.publish_schedule(schedule.uid, 1, seed.user)

    with pytest.raises(InvalidStateTransitionError):
        service.update_plan_document(schedule.uid, PlanDocument.model_validate(plan_document()), 2, seed.user)
    with pytest.raises(InvalidStateTransitionError):
        service.delete_schedule(schedule.uid, seed.user)


def test_update_schedule_bumps_version_and_snapshots_prior_state(service, db_session, seed):
    schedule = new_schedule(service, seed)

    renamed = service.update_schedule(schedule.uid, ScheduleUpdate(version=1, name="June v2"), seed.user)
    assert renamed.name == "June v2"
    assert renamed.version == 2
    assert snapshot_count(db_session, renamed.id) == 1

    with_doc = service.update_schedule(
        schedule.uid,
        ScheduleUpdate(version=2, plan_document=PlanDocument.model_validate(good_document(seed))),
        seed.user,
    )
    assert with_doc.version == 3
    assert with_doc.plan_document["metadata"]["totalShows"] == 2
    assert snapshot_count(db_session, with_doc.id) == 2

    with pytest.raises(VersionConflictError):
        service.update_schedule(schedule.uid, ScheduleUpdate(version=2, name="Stale"), seed.user)
    with pytest.raises(InvalidTimeRangeError):
        service.update_schedule(schedule.uid, ScheduleUpdate(version=3, end_date=JUNE_START), seed.user)


def test_rename_after_document_update_snapshots_the_current_document(service, db_session, seed):
    schedule = new_schedule(service, seed)
    edited = service.update_plan_document(schedule.uid, PlanDocument.model_validate(good_document(seed)), 1, seed.user)
    current_document = edited.plan_document

    renamed = service.update_schedule(schedule.uid, ScheduleUpdate(version=2, name="Renamed"), seed.user)

    assert renamed.version == 3
    snapshot = latest_snapshot(db_session, renamed.id)
    assert snapshot.snapshot_reason == "auto_save"
    assert snapshot.version == 2
    assert snapshot.plan_document == current_document
    assert len(snapshot.plan_document["shows"]) == 2


def test_status_transitions_snapshot_prior_state(service, db_session, seed):
    schedule = new_schedule(service, seed, document=good_document(seed))

    reviewed = service.submit_for_review(schedule.uid, 1, seed.user)
    snapshot = latest_snapshot(db_session, reviewed.id)
    assert (snapshot.version, snapshot.status) == (1, "draft")
    assert snapshot.plan_document == schedule.plan_document

    drafted = service.return_to_draft(schedule.uid, 2, seed.user)
    snapshot = latest_snapshot(db_session, drafted.id)
    assert (snapshot.version, snapshot.status) == (2, "review")
    assert snapshot_count(db_session, drafted.id) == 2


def test_update_plan_document_is_audited(service, db_session, seed):
    schedule = new_schedule(service, seed)

    service.update_plan_document(schedule.uid, PlanDocument.model_validate(good_document(seed)), 1, seed.user)

    entry = db_session.execute(
        select(ActivityLog).where(ActivityLog.action == "schedule.plan_document.update")
    ).scalar_one()
    assert entry.entity_id == schedule.uid
    assert entry.user_id == seed.user.id
    assert entry.details["version"] == 2
    assert entry.details["total_shows"] == 2


def test_publish_failure_during_materialization_rolls_everything_back(service, db_session, seed, monkeypatch):
    schedule = new_schedule(service, seed, document=good_document(seed))
    original = ShowOrchestrationService.materialize_plan_item
    calls = []

    def fail_on_second_item(self, target, item):
        calls.append(item.temp_id)
        if len(calls) == 2:
            raise RuntimeError("studio feed unavailable")
        return original(self, target, item)

    monkeypatch.setattr(ShowOrchestrationService, "materialize_plan_item", fail_on_second_item)

    with pytest.raises(RuntimeError, match="studio feed unavailable"):
        service.publish_schedule(schedule.uid, 1, seed.user)

    assert calls == ["morning", "evening"]
    db_session.expire_all()
    after = service.get_schedule(schedule.uid)
    assert after.status == ScheduleStatus.draft
    assert after.version == 1
    assert after.published_at is None
    assert after.published_by is None
    assert snapshot_count(db_session, after.id) == 0
    assert db_session.execute(select(func.count()).select_from(Show)).scalar_one() == 0
    actions = db_session.execute(select(ActivityLog.action)).scalars().all()
    assert "schedule.publish" not in actions


def test_duplicate_creates_fresh_draft(service, db_session, seed):
    source = new_schedule(service, seed, document=good_document(seed))
    service.publish_schedule(source.uid, 1, seed.user)

    duplicate = service.duplicate_schedule(source.uid, "July", seed.user)

    assert duplicate.uid != source.uid
    assert duplicate.name == "July"
    assert duplicate.status == ScheduleStatus.draft
    assert duplicate.version == 1
    assert duplicate.published_at is None
    assert snapshot_count(db_session, duplicate.id) == 0
    copied_shows = duplicate.plan_document["shows"]
    original_shows = service.get_schedule(source.uid).plan_document["shows"]
    assert [show["name"] for show in copied_shows] == [show["name"] for show in original_shows]
    assert {show["tempId"] for show in copied_shows}.isdisjoint({show["tempId"] for show in original_shows})
    assert copied_shows[0]["mcs"] == original_shows[0]["mcs"]


def test_manual_snapshot_and_restore(service, db_session, seed):
    schedule = new_schedule(service, seed, document=good_document(seed))
    original = schedule.plan_document
    manual = service.create_manual_snapshot(schedule.uid, seed.user)
    assert manual.snapshot_reason == "manual"
    assert manual.version == 1

    emptied = service.update_plan_document(schedule.uid, PlanDocument.model_validate(plan_document()), 1, seed.user)
    emptied_document = emptied.plan_document

    restored = service.restore_from_snapshot(manual.uid, 2, seed.user)

    assert restored.version == 3
    assert [show["tempId"] for show in restored.plan_document["shows"]] == [
        show["tempId"] for show in original["shows"]
    ]
    before_restore = latest_snapshot(db_session, restored.id)
    assert before_restore.snapshot_reason == "before_restore"
    assert before_restore.plan_document == emptied_document

    with pytest.raises(VersionConflictError):
        service.restore_from_snapshot(manual.uid, 2, seed.user)


def test_snapshot_listing_is_newest_first(service, seed):
    schedule = new_schedule(service, seed)
    service.update_plan_document(schedule.uid, PlanDocument.model_validate(plan_document()), 1, seed.user)
    service.create_manual_snapshot(schedule.uid, seed.user)

    snapshots = service.list_snapshots(schedule.uid)

    assert [item.snapshot_reason for item in snapshots] == ["manual", "auto_save"]
    assert [item.version for item in snapshots] == [2, 1]
    assert len(service.list_snapshots(schedule.uid, limit=1)) == 1


def test_deleted_schedule_is_hidden(service, seed):
    schedule = new_schedule(service, seed)

    service.delete_schedule(schedule.uid, seed.user)

    with pytest.raises(NotFoundError):
        service.get_schedule(schedule.uid)
    assert service.list_schedules(client_uid=seed.client.uid) == []


def test_list_schedules_filters(service, seed):
    new_schedule(service, seed, name="June")
    other = new_schedule(service, seed, name="July")
    service.submit_for_review(other.uid, 1, seed.user)

    assert [item.name for item in service.list_schedules(status=ScheduleStatus.review)] == ["July"]
    assert [item.name for item in service.list_schedules(name="jun")] == ["June"]


def test_concurrent_updates_with_same_version_only_one_wins(tmp_path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session_a, session_b = factory(), factory()
    try:
        seed = seed_reference_data(session_a)
        service_a = SchedulePlanningService(session_a)
        service_b = SchedulePlanningService(session_b)
        uid = new_schedule(service_a, seed).uid

        # Both writers read version 1 before either writes.
        assert service_a.get_schedule(uid).version == 1
        assert service_b.get_schedule(uid).version == 1

        winner = service_a.update_plan_document(uid, PlanDocument.model_validate(good_document(seed)), 1, seed.user)
        assert winner.version == 2

        # session_b still holds version 1 in its identity map, so only the
        # conditional update can catch the lost race.
        with pytest.raises(VersionConflictError) as exc_info:
            service_b.update_plan_document(uid, PlanDocument.model_validate(plan_document()), 1, None)
        assert exc_info.value.details["current_version"] == 2

        session_a.expire_all()
        final = service_a.get_schedule(uid)
        assert final.version == 2
        assert final.plan_document["metadata"]["totalShows"] == 2
        assert snapshot_count(session_a, final.id) == 1
    finally:
        session_a.close()
        session_b.close()
        engine.dispose()
