"""Admin review queue for time logs."""

import json

import pytest

from conftest import location, login_as, utc

from models.audit_log import AuditLog
from models.time_log import TimeLog


def _add_log(db, user, clock_in, clock_out=None, status="pending"):
    log = TimeLog(
        user_id=user.id,
        clock_in_time=clock_in,
        clock_in_location=json.dumps(location()),
        clock_out_time=clock_out,
        clock_out_location=json.dumps(location()) if clock_out else None,
        status=status,
        open_session_user_id=user.id if clock_out is None else None,
    )
    db.add(log)
    db.commit()
    return log.id


def _reload(db, log_id):
    db.expire_all()
    return db.query(TimeLog).filter(TimeLog.id == log_id).one()


class TestAccess:

    def test_client_is_forbidden(self, client, customer):
        login_as(client, customer)
        resp = client.get("/admin/timelogs")
        assert resp.status_code == 403
        assert resp.json() == {"error": "Forbidden - Admin access required"}

    def test_worker_is_forbidden(self, client, worker):
        login_as(client, worker)
        assert client.put("/admin/timelogs/1", json={"status": "approved"}).status_code == 403

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/admin/timelogs").status_code == 401


class TestListing:

    def test_lists_every_worker_with_filters(self, client, admin, make_user, db):
        ana = make_user("worker", name="Ana")
        ben = make_user("worker", name="Ben")
        _add_log(db, ana, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17), status="approved")
        _add_log(db, ana, utc(2025, 3, 4, 9))
        _add_log(db, ben, utc(2025, 3, 4, 10), utc(2025, 3, 4, 12))

        login_as(client, admin)
        everything = client.get("/admin/timelogs").json()["time_logs"]
        assert len(everything) == 3
        # Newest clock-in first
        assert everything[0]["user"]["name"] == "Ben"
        assert everything[0]["duration"] == "2h 0m"

        only_ana = client.get("/admin/timelogs", params={"user_id": ana.id}).json()["time_logs"]
        assert {row["user"]["email"] for row in only_ana} == {ana.email}

        approved = client.get("/admin/timelogs", params={"status": "approved"}).json()["time_logs"]
        assert len(approved) == 1
        assert approved[0]["duration"] == "8h 0m"

    def test_unknown_status_filter(self, client, admin):
        login_as(client, admin)
        assert client.get("/admin/timelogs", params={"status": "archived"}).status_code == 400


class TestReview:

    def test_approve_with_note(self, client, admin, worker, db):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)
        resp = client.put(f"/admin/timelogs/{log_id}", json={"status": "approved", "admin_note": "ok"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["admin_note"] == "ok"
        assert resp.json()["user"]["email"] == worker.email
        assert db.query(AuditLog).filter(AuditLog.action == "review_time_log").count() == 1

    def test_correct_times(self, client, admin, worker, db):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)
        resp = client.put(f"/admin/timelogs/{log_id}", json={
            "clock_in_time": "2025-03-03T08:15:00Z",
            "clock_out_time": "2025-03-03T17:45:00Z",
        })
        assert resp.status_code == 200
        assert resp.json()["duration"] == "9h 30m"

    def test_clock_out_before_clock_in_rejected(self, client, admin, worker, db):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)
        resp = client.put(f"/admin/timelogs/{log_id}", json={"clock_out_time": "2025-03-03T08:00:00Z"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Clock out time must be after clock in time"

        # The check uses the stored clock-out when only clock-in changes
        resp = client.put(f"/admin/timelogs/{log_id}", json={"clock_in_time": "2025-03-03T18:00:00Z"})
        assert resp.status_code == 400
        assert _reload(db, log_id).clock_in_time.hour == 9

    def test_invalid_status(self, client, admin, worker, db):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)
        assert client.put(f"/admin/timelogs/{log_id}", json={"status": "paid"}).status_code == 400

    def test_unknown_log(self, client, admin):
        login_as(client, admin)
        resp = client.put("/admin/timelogs/4242", json={"status": "approved"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Time log not found"

    def test_reopen_and_conflict(self, client, admin, worker, db):
        closed_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)

        reopened = client.put(f"/admin/timelogs/{closed_id}", json={"clock_out_time": None})
        assert reopened.status_code == 200
        assert reopened.json()["clock_out_time"] is None
        assert reopened.json()["duration"] is None
        assert _reload(db, closed_id).open_session_user_id == worker.id

        other_id = _add_log(db, worker, utc(2025, 3, 2, 9), utc(2025, 3, 2, 17))
        conflict = client.put(f"/admin/timelogs/{other_id}", json={"clock_out_time": None})
        assert conflict.status_code == 409
        assert conflict.json()["error"] == "This worker already has an open time log"
        assert _reload(db, other_id).clock_out_time is not None


class TestForceClockOut:

    def test_closes_open_session(self, client, admin, worker, db, freeze):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9))
        login_as(client, admin)

        freeze(utc(2025, 3, 3, 23, 59))
        resp = client.post(f"/admin/timelogs/{log_id}/force-clock-out", json={"admin_note": "Forgot to clock out"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["duration"] == "14h 59m"
        assert body["admin_note"] == "Forgot to clock out"
        assert body["clock_out_location"] is None
        assert _reload(db, log_id).open_session_user_id is None

        again = client.post(f"/admin/timelogs/{log_id}/force-clock-out")
        assert again.status_code == 409

        # The worker can start a new shift straight away
        login_as(client, worker)
        assert client.post("/timelogs", json={"clock_in_location": location()}).status_code == 201

    def test_without_body(self, client, admin, worker, db):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9))
        login_as(client, admin)
        resp = client.post(f"/admin/timelogs/{log_id}/force-clock-out")
        assert resp.status_code == 200
        assert resp.json()["admin_note"] is None


class TestDelete:

    def test_delete(self, client, admin, worker, db):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)
        resp = client.delete(f"/admin/timelogs/{log_id}")
        assert resp.status_code == 200
        assert resp.json() == {"detail": "Time log deleted successfully"}
        assert db.query(TimeLog).count() == 0
        assert client.delete(f"/admin/timelogs/{log_id}").status_code == 404


class TestAdminNoteLimit:

    @pytest.mark.parametrize("length, status", [(1000, 200), (1001, 400)])
    def test_review_note(self, client, admin, worker, db, length, status):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9), utc(2025, 3, 3, 17))
        login_as(client, admin)
        resp = client.put(f"/admin/timelogs/{log_id}", json={"status": "approved", "admin_note": "a" * length})
        assert resp.status_code == status

        log = _reload(db, log_id)
        if status == 200:
            assert (log.status, log.admin_note) == ("approved", "a" * length)
        else:
            assert (log.status, log.admin_note) == ("pending", None)

    @pytest.mark.parametrize("length, status", [(1000, 200), (1001, 400)])
    def test_force_clock_out_note(self, client, admin, worker, db, length, status):
        log_id = _add_log(db, worker, utc(2025, 3, 3, 9))
        login_as(client, admin)
        resp = client.post(f"/admin/timelogs/{log_id}/force-clock-out", json={"admin_note": "a" * length})
        assert resp.status_code == status

        log = _reload(db, log_id)
        if status == 200:
            assert log.admin_note == "a" * length
            assert log.clock_out_time is not None
        else:
            assert log.admin_note is None
            assert log.clock_out_time is None
            assert log.open_session_user_id == worker.id
