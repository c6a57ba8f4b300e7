"""Tests for the workflow service against a real (SQLite) database."""

import pytest
from sqlalchemy.exc import OperationalError

from reqflow.core.workflow import (
    REQUEST_CREATED,
    ConflictError,
    Forbidden,
    HistoryLedger,
    InvalidInput,
    InvalidTransition,
    NotFound,
    RequestAlreadyRejected,
    RequestStatus,
    RequestStore,
    StoreUnavailable,
    Unauthorized,
    WorkflowService,
)

from tests.factories import create_employee, create_request


@pytest.fixture()
def pending(db_session, org):
    """An unrelated manager files a request for emp1 (manager mgr1)."""
    return create_request(db_session, creator=org["outsider"], assignee=org["emp1"], title="T", description="D")


def history_actions(service, request_id):
    return [entry.action for entry in service.ledger.entries(request_id)]


class TestCreateRequest:

    def test_routed_to_assignees_manager(self, service, org, pending):
        assert pending.status == RequestStatus.PENDING_MANAGER_APPROVAL.value
        assert pending.manager_id == org["mgr1"].id
        assert pending.assigned_to == org["emp1"].id
        assert pending.created_by == org["outsider"].id
        assert history_actions(service, pending.id) == [REQUEST_CREATED]

    def test_round_trip_through_get(self, service, principals, org, pending):
        fetched = service.get_request(pending.id, principals["mgr1"])
        assert fetched.status == RequestStatus.PENDING_MANAGER_APPROVAL.value
        assert fetched.manager_id == org["mgr1"].id

    def test_creation_entry_records_creator(self, service, org, pending):
        entry = service.ledger.entries(pending.id)[0]
        assert entry.user_id == org["outsider"].id

    def test_missing_fields_reported_together(self, service, principals):
        with pytest.raises(InvalidInput) as exc_info:
            service.create_request("", "   ", None, principals["mgr1"])
        assert "title" in exc_info.value.message
        assert "description" in exc_info.value.message
        assert "assigned_to" in exc_info.value.message

    def test_self_assignment_rejected(self, service, principals, org):
        with pytest.raises(InvalidInput, match="yourself"):
            service.create_request("T", "D", org["emp1"].id, principals["emp1"])

    def test_unknown_assignee_rejected(self, service, principals):
        with pytest.raises(InvalidInput, match="does not exist"):
            service.create_request("T", "D", 99999, principals["mgr1"])

    def test_manager_assignee_rejected(self, service, principals, org):
        with pytest.raises(InvalidInput, match="employees"):
            service.create_request("T", "D", org["mgr2"].id, principals["mgr1"])

    def test_employee_without_manager_rejected(self, db_session, service, principals):
        orphan = create_employee(db_session, manager=None)
        with pytest.raises(InvalidInput, match="no manager"):
            service.create_request("T", "D", orphan.id, principals["mgr1"])

    def test_failed_creation_writes_nothing(self, db_session, service, principals, org):
        with pytest.raises(InvalidInput):
            service.create_request("T", "D", org["mgr2"].id, principals["mgr1"])
        assert service.store.list_by_predicate() == []

    def test_manager_frozen_at_creation(self, db_session, service, principals, org, pending):
        emp1 = org["emp1"]
        emp1.manager_id = org["mgr2"].id
        db_session.commit()

        assert service.get_request(pending.id, principals["mgr1"]).manager_id == org["mgr1"].id
        with pytest.raises(Forbidden):
            service.apply_action(pending.id, "APPROVE", principals["mgr2"])
        approved = service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        assert approved.status == RequestStatus.MANAGER_APPROVED.value


class TestApplyAction:

    def test_only_assigned_manager_approves(self, service, principals, pending):
        approved = service.apply_action(pending.id, "approve", principals["mgr1"])
        assert approved.status == RequestStatus.MANAGER_APPROVED.value

        with pytest.raises(Forbidden):
            service.apply_action(pending.id, "APPROVE", principals["mgr2"])

    def test_full_lifecycle(self, service, principals, pending):
        with pytest.raises(InvalidTransition):
            service.apply_action(pending.id, "ACTION", principals["emp1"])

        service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        in_progress = service.apply_action(pending.id, "action", principals["emp1"])
        assert in_progress.status == RequestStatus.ACTION_IN_PROGRESS.value

        closed = service.apply_action(pending.id, "close", principals["emp1"])
        assert closed.status == RequestStatus.CLOSED.value

        with pytest.raises(InvalidTransition):
            service.apply_action(pending.id, "CLOSE", principals["emp1"])

        assert history_actions(service, pending.id) == [
            REQUEST_CREATED,
            "MANAGER_APPROVED",
            "ACTION_IN_PROGRESS",
            "CLOSED",
        ]

    def test_rejection_is_terminal(self, service, principals, pending):
        rejected = service.apply_action(pending.id, "REJECT", principals["mgr1"])
        assert rejected.status == RequestStatus.MANAGER_REJECTED.value

        with pytest.raises(RequestAlreadyRejected):
            service.apply_action(pending.id, "ACTION", principals["emp1"])
        with pytest.raises(InvalidTransition):
            service.apply_action(pending.id, "APPROVE", principals["mgr1"])

    def test_each_transition_appends_one_entry(self, service, principals, pending):
        steps = [("APPROVE", "mgr1"), ("ACTION", "emp1"), ("CLOSE", "emp1")]
        for action, actor in steps:
            before = len(service.ledger.entries(pending.id))
            request = service.apply_action(pending.id, action, principals[actor])
            entries = service.ledger.entries(pending.id)
            assert len(entries) == before + 1
            assert entries[-1].action == request.status
            assert entries[-1].user_id == principals[actor].id

    def test_repeat_call_fails_second_time(self, service, principals, pending):
        service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        with pytest.raises(InvalidTransition):
            service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        assert len(service.ledger.entries(pending.id)) == 2

    def test_updated_at_refreshed(self, service, principals, pending):
        created_at = pending.created_at
        approved = service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        assert approved.updated_at >= created_at

    @pytest.mark.parametrize("path", [
        [],
        [("APPROVE", "mgr1")],
        [("REJECT", "mgr1")],
        [("APPROVE", "mgr1"), ("ACTION", "emp1")],
        [("APPROVE", "mgr1"), ("ACTION", "emp1"), ("CLOSE", "emp1")],
    ])
    def test_unauthorized_approve_never_leaks_status(self, service, principals, pending, path):
        for action, actor in path:
            service.apply_action(pending.id, action, principals[actor])

        with pytest.raises(Forbidden):
            service.apply_action(pending.id, "APPROVE", principals["mgr2"])
        with pytest.raises(Unauthorized):
            service.apply_action(pending.id, "APPROVE", principals["emp1"])

    def test_employee_of_other_request_forbidden(self, service, principals, pending):
        service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        with pytest.raises(Forbidden):
            service.apply_action(pending.id, "ACTION", principals["emp2"])

    def test_unknown_request(self, service, principals):
        with pytest.raises(NotFound):
            service.apply_action(424242, "APPROVE", principals["mgr1"])

    def test_unknown_action(self, service, principals, pending):
        with pytest.raises(InvalidInput):
            service.apply_action(pending.id, "escalate", principals["mgr1"])


class _BrokenLedger(HistoryLedger):
    def append(self, request_id, actor_id, action):
        raise OperationalError("INSERT INTO request_history", {}, Exception("disk I/O error"))


class _RacingStore(RequestStore):
    """Runs ``race`` right after the first locked read, simulating a concurrent writer."""

    def __init__(self, db, race):
        super().__init__(db)
        self.race = race

    def get(self, request_id, *, for_update=False):
        request = super().get(request_id, for_update=for_update)
        if for_update and self.race is not None:
            race, self.race = self.race, None
            race()
        return request


class TestAtomicity:

    def test_ledger_failure_rolls_back_status(self, db_session, principals, pending):
        broken = WorkflowService(db_session, ledger=_BrokenLedger(db_session))
        with pytest.raises(StoreUnavailable):
            broken.apply_action(pending.id, "APPROVE", principals["mgr1"])

        service = WorkflowService(db_session)
        request = service.get_request(pending.id, principals["mgr1"])
        assert request.status == RequestStatus.PENDING_MANAGER_APPROVAL.value
        assert len(service.ledger.entries(pending.id)) == 1

    def test_ledger_failure_on_create_leaves_no_request(self, db_session, principals, org):
        broken = WorkflowService(db_session, ledger=_BrokenLedger(db_session))
        with pytest.raises(StoreUnavailable):
            broken.create_request("T", "D", org["emp1"].id, principals["outsider"])
        assert WorkflowService(db_session).store.list_by_predicate() == []

    def test_lost_race_reports_invalid_transition(self, db_session, session_factory, principals, pending):
        other = session_factory()

        def concurrent_approve():
            WorkflowService(other).apply_action(pending.id, "APPROVE", principals["mgr1"])

        racing = WorkflowService(db_session, store=_RacingStore(db_session, concurrent_approve))
        with pytest.raises(InvalidTransition):
            racing.apply_action(pending.id, "REJECT", principals["mgr1"])
        other.close()

        service = WorkflowService(db_session)
        assert service.get_request(pending.id, principals["mgr1"]).status == "MANAGER_APPROVED"
        assert history_actions(service, pending.id) == [REQUEST_CREATED, "MANAGER_APPROVED"]

    def test_conflict_surfaces_when_state_still_valid(self, db_session, principals, pending, monkeypatch):
        service = WorkflowService(db_session)

        def lose_race(request_id, expected_status, new_status):
            raise ConflictError("status changed underneath us")

        monkeypatch.setattr(service.store, "transition", lose_race)
        with pytest.raises(ConflictError):
            service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        assert len(service.ledger.entries(pending.id)) == 1

    def test_store_failure_while_rechecking_conflict(self, db_session, principals, pending, monkeypatch):
        service = WorkflowService(db_session)
        locked_get = service.store.get

        def lose_race(request_id, expected_status, new_status):
            raise ConflictError("status changed underneath us")

        def get(request_id, *, for_update=False):
            if for_update:
                return locked_get(request_id, for_update=True)
            raise OperationalError("SELECT requests", {}, Exception("connection lost"))

        monkeypatch.setattr(service.store, "transition", lose_race)
        monkeypatch.setattr(service.store, "get", get)
        with pytest.raises(StoreUnavailable):
            service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        assert len(service.ledger.entries(pending.id)) == 1


class TestReadPaths:

    def test_listings_are_scoped_by_role_and_status(self, db_session, service, principals, org):
        creator = org["outsider"]
        emp1 = org["emp1"]
        pending = create_request(db_session, creator=creator, assignee=emp1, title="pending")
        approved = create_request(db_session, creator=creator, assignee=emp1, title="approved")
        rejected = create_request(db_session, creator=creator, assignee=emp1, title="rejected")
        in_progress = create_request(db_session, creator=creator, assignee=emp1, title="in progress")
        closed = create_request(db_session, creator=creator, assignee=emp1, title="closed")

        mgr1, e1 = principals["mgr1"], principals["emp1"]
        service.apply_action(approved.id, "APPROVE", mgr1)
        service.apply_action(rejected.id, "REJECT", mgr1)
        for request in (in_progress, closed):
            service.apply_action(request.id, "APPROVE", mgr1)
            service.apply_action(request.id, "ACTION", e1)
        service.apply_action(closed.id, "CLOSE", e1)

        manager_ids = [r.id for r in service.list_requests(mgr1)]
        assert manager_ids == [rejected.id, approved.id, pending.id]

        employee_ids = [r.id for r in service.list_requests(e1)]
        assert employee_ids == [in_progress.id, approved.id]

    def test_listing_scoped_to_owner(self, db_session, service, principals, org):
        create_request(db_session, creator=org["outsider"], assignee=org["emp3"])
        assert service.list_requests(principals["mgr1"]) == []
        assert len(service.list_requests(principals["mgr2"])) == 1
        assert service.list_requests(principals["emp1"]) == []

    def test_rejected_visible_by_fetch_only(self, service, principals, pending):
        service.apply_action(pending.id, "REJECT", principals["mgr1"])
        assert service.list_requests(principals["emp1"]) == []
        fetched = service.get_request(pending.id, principals["emp1"])
        assert fetched.status == RequestStatus.MANAGER_REJECTED.value

    def test_get_visibility(self, db_session, service, principals, org):
        # emp2 files a request for emp1; both are employees of mgr1
        request = create_request(db_session, creator=org["emp2"], assignee=org["emp1"])

        for key in ("mgr1", "emp1", "emp2"):
            assert service.get_request(request.id, principals[key]).id == request.id
        for key in ("mgr2", "outsider", "emp3"):
            with pytest.raises(Forbidden):
                service.get_request(request.id, principals[key])

    def test_creator_manager_cannot_fetch(self, service, principals, pending):
        # The outsider filed it but is not the approving manager
        with pytest.raises(Forbidden):
            service.get_request(pending.id, principals["outsider"])

    def test_get_unknown(self, service, principals):
        with pytest.raises(NotFound):
            service.get_request(31337, principals["mgr1"])

    def test_refused_fetch_does_not_reveal_status(self, service, principals, pending):
        service.apply_action(pending.id, "REJECT", principals["mgr1"])
        with pytest.raises(Forbidden) as exc_info:
            service.get_request(pending.id, principals["mgr2"])
        assert "REJECTED" not in exc_info.value.message
        with pytest.raises(NotFound):
            service.get_request(pending.id + 1000, principals["mgr2"])

    def test_history_follows_fetch_visibility(self, service, principals, pending):
        service.apply_action(pending.id, "APPROVE", principals["mgr1"])
        entries = service.get_history(pending.id, principals["emp1"])
        assert [e.action for e in entries] == [REQUEST_CREATED, "MANAGER_APPROVED"]
        with pytest.raises(Forbidden):
            service.get_history(pending.id, principals["mgr2"])
