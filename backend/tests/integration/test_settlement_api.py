"""
tests/integration/test_settlement_api.py — Integration tests for settlement endpoints.

Endpoints covered:
  POST /settlements              → 201
  GET  /settlements/me           → 200 {unpaid, paid}
  POST /settlements/:id/report   → 200
  PUT  /settlements/:id          → 200
  GET  /events/:id/settlements   → 200
  GET  /health                   → 200

Also covers caller identification (401), the error envelope, the database
unique constraint on payments and isolated settlement lookups.
"""

from __future__ import annotations

import os
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from backend.app import create_app
from backend.app.dependencies import settlement_service
from backend.app.errors import ErrorCode
from backend.app.extensions import db
from backend.app.models.enums import PaymentMethod, PaymentStatus
from backend.app.models.payment import Payment
from backend.app.models.settlement import Settlement
from backend.app.services.settlement_service import CREATED, EXISTS, FAILED, SKIPPED

from .conftest import make_settlement, my_settlements, user_headers

DUE = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)

ON_POSTGRES = os.getenv("TEST_DATABASE_URL", "").startswith("postgresql")


def _payments_for(app, settlement_id: str) -> list[Payment]:
    with app.app_context():
        return list(
            db.session.execute(
                db.select(Payment).where(Payment.settlement_id == settlement_id)
            ).scalars()
        )


def _settlement_exists(app, settlement_id: str) -> bool:
    with app.app_context():
        return db.session.get(Settlement, settlement_id) is not None


def _create_committed(app, targets: list[str], title: str = "Court fee") -> str:
    with app.app_context():
        settlement, _ = settlement_service().create_settlement(
            circle_id="c1",
            event_id="",
            title=title,
            amount=1000,
            due_at=DUE,
            target_user_ids=targets,
        )
        settlement_id = settlement.id
        db.session.commit()
    return settlement_id


class TestCreateSettlement:

    def test_creates_unpaid_payment_per_target(self, app, client):
        resp = make_settlement(client, ["u1", "u2"], amount=1000)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["warnings"] == []
        data = body["data"]
        assert data["amount"] == 1000
        assert data["targetUserIds"] == ["u1", "u2"]
        assert data["eventId"] == ""

        payments = _payments_for(app, data["id"])
        assert sorted(p.user_id for p in payments) == ["u1", "u2"]
        assert {p.status.value for p in payments} == {"UNPAID"}

    def test_duplicate_targets_give_one_payment(self, app, client):
        resp = make_settlement(client, ["u1", "u1"])

        assert resp.status_code == 201
        assert resp.get_json()["data"]["targetUserIds"] == ["u1"]
        assert len(_payments_for(app, resp.get_json()["data"]["id"])) == 1

    def test_negative_amount(self, client):
        resp = make_settlement(client, ["u1"], amount=-1)

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_AMOUNT"
        assert error["field"] == "amount"

    def test_empty_targets(self, client):
        resp = make_settlement(client, [])

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "EMPTY_TARGET_USERS"

    def test_missing_field(self, client):
        resp = client.post(
            "/api/v1/settlements",
            json={"circleId": "c1", "amount": 1},
            headers=user_headers("owner"),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "MISSING_FIELD"

    def test_requires_user_header(self, client):
        resp = client.post("/api/v1/settlements", json={})

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "USER_ID_MISSING"


class TestMySettlements:

    def test_splits_unpaid_and_paid(self, client):
        first = make_settlement(client, ["u1"], title="first").get_json()["data"]
        make_settlement(client, ["u1", "u2"], title="second")
        make_settlement(client, ["u2"], title="not mine")

        client.post(
            f"/api/v1/settlements/{first['id']}/report",
            json={"method": "BANK"},
            headers=user_headers("u1"),
        )

        data = my_settlements(client, "u1")
        assert [s["title"] for s in data["unpaid"]] == ["second"]
        assert [s["title"] for s in data["paid"]] == ["first"]
        assert data["paid"][0]["payment"]["status"] == "PAID_REPORTED"
        assert data["unpaid"][0]["payment"]["status"] == "UNPAID"

    def test_empty_for_unknown_user(self, client):
        make_settlement(client, ["u1"])
        assert my_settlements(client, "nobody") == {"unpaid": [], "paid": []}


class TestReportPayment:

    def test_report_then_report_again(self, client):
        settlement = make_settlement(client, ["u1"]).get_json()["data"]
        url = f"/api/v1/settlements/{settlement['id']}/report"

        first = client.post(url, json={"method": "BANK", "note": "a"}, headers=user_headers("u1"))
        second = client.post(url, json={"method": "PAYPAY", "note": "b"}, headers=user_headers("u1"))

        assert first.status_code == 200
        assert second.status_code == 200
        data = second.get_json()["data"]
        assert data["status"] == "PAID_REPORTED"
        assert data["method"] == "PAYPAY"
        assert data["note"] == "b"
        assert data["reportedAt"] is not None

    def test_non_target_gets_404(self, client):
        settlement = make_settlement(client, ["u1"]).get_json()["data"]

        resp = client.post(
            f"/api/v1/settlements/{settlement['id']}/report",
            json={"method": "BANK"},
            headers=user_headers("u2"),
        )

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "PAYMENT_NOT_FOUND"

    def test_unknown_method(self, client):
        settlement = make_settlement(client, ["u1"]).get_json()["data"]

        resp = client.post(
            f"/api/v1/settlements/{settlement['id']}/report",
            json={"method": "CASH"},
            headers=user_headers("u1"),
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"
        assert resp.get_json()["error"]["field"] == "method"


class TestUpdateSettlement:

    def test_updates_terms_only(self, client):
        settlement = make_settlement(client, ["u1", "u2"]).get_json()["data"]

        resp = client.put(
            f"/api/v1/settlements/{settlement['id']}",
            json={"title": "Renamed", "amount": 1500, "dueAt": "2024-07-15T00:00:00+00:00"},
            headers=user_headers("owner"),
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["title"] == "Renamed"
        assert data["amount"] == 1500
        assert data["targetUserIds"] == ["u1", "u2"]
        assert data["bankInfo"] == "Bank X 1234567"

    def test_unknown_settlement(self, client):
        resp = client.put(
            "/api/v1/settlements/does-not-exist",
            json={"title": "x", "amount": 1, "dueAt": "2024-07-15T00:00:00+00:00"},
            headers=user_headers("owner"),
        )
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "SETTLEMENT_NOT_FOUND"


class TestEventSettlements:

    def test_lists_only_that_event(self, client):
        make_settlement(client, ["u1"], event_id="e1", title="one")
        make_settlement(client, ["u1"], event_id="e1", title="two")
        make_settlement(client, ["u1"], event_id="e2", title="other")

        resp = client.get("/api/v1/events/e1/settlements", headers=user_headers("u1"))

        assert resp.status_code == 200
        assert sorted(s["title"] for s in resp.get_json()["data"]) == ["one", "two"]


class TestPaymentUniqueness:
    """One payment per (settlement, user), enforced by the database itself."""

    def test_duplicate_insert_is_rejected_and_rest_survives(self, app):
        with app.app_context():
            service = settlement_service()
            settlement, outcomes = service.create_settlement(
                circle_id="c1",
                event_id="",
                title="Court fee",
                amount=1000,
                due_at=DUE,
                target_user_ids=["u1", "u2"],
            )
            settlement_id = settlement.id

            duplicate = service._create_payment(settlement_id, "u1")
            late = service._create_payment(settlement_id, "u3")
            db.session.commit()

        assert [o.action for o in outcomes] == [CREATED, CREATED]
        assert duplicate.action == FAILED
        assert duplicate.error == ErrorCode.PAYMENT_ALREADY_EXISTS
        assert late.action == CREATED

        assert _settlement_exists(app, settlement_id)
        payments = _payments_for(app, settlement_id)
        assert sorted(p.user_id for p in payments) == ["u1", "u2", "u3"]

    def test_sequential_ensure_finds_existing_row(self, app):
        settlement_id = _create_committed(app, ["u1"])

        with app.app_context():
            service = settlement_service()
            first = service.ensure_payment(settlement_id, "u1")
            second = service.ensure_payment(settlement_id, "u2")
            third = service.ensure_payment(settlement_id, "u2")
            db.session.commit()

        assert [first.action, second.action, third.action] == [EXISTS, CREATED, EXISTS]
        assert sorted(p.user_id for p in _payments_for(app, settlement_id)) == ["u1", "u2"]

    @pytest.mark.skipif(not ON_POSTGRES, reason="needs concurrent PostgreSQL connections")
    def test_concurrent_ensure_leaves_one_row(self, app):
        settlement_id = _create_committed(app, ["u1"])
        barrier = threading.Barrier(2)

        def ensure():
            with app.app_context():
                service = settlement_service()
                barrier.wait(timeout=10)
                outcome = service.ensure_payment(settlement_id, "u2")
                db.session.commit()
                return outcome

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(ensure) for _ in range(2)]
            outcomes = [f.result(timeout=30) for f in futures]

        actions = [o.action for o in outcomes]
        assert actions.count(CREATED) == 1
        assert set(actions) <= {CREATED, EXISTS, FAILED}
        rows = [p for p in _payments_for(app, settlement_id) if p.user_id == "u2"]
        assert len(rows) == 1


class TestMySettlementsStoreFailure:

    def test_failed_lookup_skips_one_row_and_session_stays_usable(self, app):
        broken_id = _create_committed(app, ["u1"], title="broken")
        ok_id = _create_committed(app, ["u1"], title="fine")

        with app.app_context():
            real_get = db.session.get

            def flaky_get(model, ident, *args, **kwargs):
                if model is Settlement and ident == broken_id:
                    raise OperationalError("SELECT settlements", {}, Exception("connection reset"))
                return real_get(model, ident, *args, **kwargs)

            service = settlement_service()
            with patch.object(db.session, "get", side_effect=flaky_get):
                mine = service.get_my_settlements("u1")

            service.report_payment(ok_id, "u1", PaymentMethod.BANK)
            db.session.commit()

        assert [item.settlement.title for item in mine.items] == ["fine"]
        assert [(s.settlement_id, s.action, s.error) for s in mine.skipped] == [
            (broken_id, SKIPPED, ErrorCode.STORE_ERROR),
        ]
        (reported,) = [p for p in _payments_for(app, ok_id) if p.user_id == "u1"]
        assert reported.status == PaymentStatus.PAID_REPORTED


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"status": "ok"}


def test_app_factory_registers_no_unused_extensions():
    with warnings.catch_warnings():
        warnings.simplefilter("error", UserWarning)
        flask_app = create_app("testing")

    assert "sqlalchemy" in flask_app.extensions
    assert "flask-marshmallow" not in flask_app.extensions
