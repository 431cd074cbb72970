"""HTTP-level tests: envelope, auth gate, maintenance lock, admin role.

The SQL repositories behind each router are swapped for the in-memory fakes
and the DB session for an AsyncMock, so no database is needed.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

import src.iv_account.api.router as account_api
import src.iv_admin.api.router as admin_api
import src.iv_gateway.auth.dependencies as auth_deps
import src.iv_investment.api.router as investment_api
import src.iv_journal.api.router as journal_api
import src.iv_maintenance.api.router as maintenance_api
import src.iv_withdrawal.api.router as withdrawal_api
from src.iv_account.application.service import AccountApplicationService
from src.iv_admin.application.service import AdminService
from src.iv_common.database import get_db_session
from src.iv_common.datetime_utils import utc_now
from src.iv_gateway.auth.pin import hash_pin
from src.iv_investment.application.service import InvestmentApplicationService
from src.iv_journal.application.service import JournalApplicationService
from src.iv_maintenance.application.service import MaintenanceService
from src.iv_withdrawal.application.service import WithdrawalApplicationService
from src.main import app
from tests.fakes import (
    FakeAccountRepository,
    FakeDestinationRepository,
    FakeJournalRepository,
    FakeMaintenanceRepository,
    FakePositionRepository,
    make_access_token,
    make_account,
)

PIN = "112233"


class Ledger:
    def __init__(self) -> None:
        self.accounts = FakeAccountRepository(
            make_account("user-1", main=100000, pin_hash=hash_pin(PIN)),
            make_account("admin-1", is_admin=True),
        )
        self.journal = FakeJournalRepository()
        self.positions = FakePositionRepository()
        self.destinations = FakeDestinationRepository()
        self.maintenance = FakeMaintenanceRepository()


@pytest.fixture
def ledger(monkeypatch: pytest.MonkeyPatch) -> Ledger:
    led = Ledger()
    maintenance = MaintenanceService(led.maintenance)
    withdrawals = WithdrawalApplicationService(led.accounts, led.journal, led.destinations)
    investments = InvestmentApplicationService(led.positions, led.accounts, led.journal)

    monkeypatch.setattr(auth_deps, "_accounts", led.accounts)
    monkeypatch.setattr(auth_deps, "_maintenance", maintenance)
    monkeypatch.setattr(
        account_api, "_service", AccountApplicationService(led.accounts, led.journal)
    )
    monkeypatch.setattr(journal_api, "_service", JournalApplicationService(led.journal))
    monkeypatch.setattr(investment_api, "_service", investments)
    monkeypatch.setattr(withdrawal_api, "_service", withdrawals)
    monkeypatch.setattr(maintenance_api, "_service", maintenance)
    monkeypatch.setattr(admin_api, "_service", AdminService(led.accounts, led.journal))
    monkeypatch.setattr(
        admin_api, "_accounts", AccountApplicationService(led.accounts, led.journal)
    )
    monkeypatch.setattr(admin_api, "_withdrawals", withdrawals)
    monkeypatch.setattr(admin_api, "_investments", investments)
    monkeypatch.setattr(admin_api, "_maintenance", maintenance)

    async def _db():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _db
    return led


def _auth(account_id: str = "user-1", email_verified: bool = True) -> dict[str, str]:
    token = make_access_token(account_id, email_verified=email_verified)
    return {"Authorization": f"Bearer {token}"}


class TestPublicRoutes:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_offers_need_no_token(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/investments/offers")
        body = resp.json()
        assert resp.status_code == 200
        assert body["code"] == 0
        assert [o["name"] for o in body["data"]["items"]] == [
            "Quantum Alpha",
            "Crypto Velocity",
            "Global Elite",
        ]

    async def test_maintenance_status(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/maintenance/status")
        assert resp.json()["data"] == {"under_maintenance": False, "ends_at": None}


class TestAuthGate:
    async def test_missing_token(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/account/balance")
        assert resp.status_code == 401

    async def test_garbage_token(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get(
            "/api/v1/account/balance", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401

    async def test_not_onboarded(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/account/balance", headers=_auth("stranger"))
        assert resp.status_code == 404
        assert resp.json()["code"] == 2002

    async def test_balance_envelope(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/account/balance", headers=_auth())
        body = resp.json()
        assert resp.status_code == 200
        assert body["code"] == 0
        assert body["message"] == "success"
        assert body["data"]["total_balance_cents"] == 100000
        assert body["request_id"]

    async def test_suspended_cannot_deposit(self, client: AsyncClient, ledger: Ledger) -> None:
        ledger.accounts.accounts["user-1"].status = "suspended"
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount_cents": 5000}, headers=_auth()
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1003
        assert resp.json()["data"] is None

    async def test_suspended_can_still_read(self, client: AsyncClient, ledger: Ledger) -> None:
        ledger.accounts.accounts["user-1"].status = "suspended"
        resp = await client.get("/api/v1/account/balance", headers=_auth())
        assert resp.status_code == 200

    async def test_banned_is_signed_out(self, client: AsyncClient, ledger: Ledger) -> None:
        ledger.accounts.accounts["user-1"].status = "banned"
        resp = await client.get("/api/v1/account", headers=_auth())
        body = resp.json()
        assert resp.status_code == 403
        assert body["code"] == 1004
        assert body["data"] == {"sign_out": True}

    async def test_unverified_email_cannot_mutate(
        self, client: AsyncClient, ledger: Ledger
    ) -> None:
        resp = await client.post(
            "/api/v1/account/deposit",
            json={"amount_cents": 5000},
            headers=_auth(email_verified=False),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1006

    async def test_body_validation(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount_cents": 0}, headers=_auth()
        )
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        ("path", "extra"),
        [
            ("/api/v1/account/deposit", {}),
            ("/api/v1/withdrawals/quote", {}),
            ("/api/v1/withdrawals", {"destination_id": 1, "pin": PIN}),
            ("/api/v1/investments", {"offer_name": "Quantum Alpha"}),
        ],
    )
    async def test_oversized_amount_refused(
        self, client: AsyncClient, ledger: Ledger, path: str, extra: dict
    ) -> None:
        resp = await client.post(
            path, json={"amount_cents": 2**70, **extra}, headers=_auth()
        )
        assert resp.status_code == 422
        assert ledger.accounts.accounts["user-1"].total_balance == 100000
        assert ledger.journal.entries == {}


class TestLedgerRoutes:
    async def test_deposit_then_journal(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount_cents": 5000}, headers=_auth()
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["total_balance_cents"] == 105000

        journal = await client.get(
            "/api/v1/journal", params={"entry_type": "deposit"}, headers=_auth()
        )
        [item] = journal.json()["data"]["items"]
        assert item["amount_cents"] == 5000
        assert item["direction"] == "in"

    async def test_voucher_withdrawal_refused(self, client: AsyncClient, ledger: Ledger) -> None:
        ledger.accounts.accounts["user-1"].is_voucher = True
        resp = await client.post(
            "/api/v1/withdrawals/quote", json={"amount_cents": 10000}, headers=_auth()
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1002

    async def test_withdrawal_round_trip_with_admin_rejection(
        self, client: AsyncClient, ledger: Ledger
    ) -> None:
        dest = await client.post(
            "/api/v1/payout-destinations",
            json={"key_type": "email", "key": "user@example.com"},
            headers=_auth(),
        )
        assert dest.status_code == 201
        dest_id = dest.json()["data"]["id"]

        req = await client.post(
            "/api/v1/withdrawals",
            json={"amount_cents": 100000, "destination_id": dest_id, "pin": PIN},
            headers=_auth(),
        )
        assert req.status_code == 201
        entry_id = req.json()["data"]["entry_id"]
        assert req.json()["data"]["net_cents"] == 93000
        assert ledger.accounts.accounts["user-1"].total_balance == 0

        pending = await client.get("/api/v1/admin/withdrawals/pending", headers=_auth("admin-1"))
        assert [w["entry_id"] for w in pending.json()["data"]["items"]] == [entry_id]

        resolved = await client.post(
            f"/api/v1/admin/withdrawals/{entry_id}/resolve",
            json={"approved": False},
            headers=_auth("admin-1"),
        )
        assert resolved.json()["data"]["status"] == "rejected"
        assert ledger.accounts.accounts["user-1"].total_balance == 100000

    async def test_open_position(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.post(
            "/api/v1/investments",
            json={"offer_name": "Quantum Alpha", "amount_cents": 20000},
            headers=_auth(),
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["charged_cents"] == 20000

        listed = await client.get(
            "/api/v1/investments", params={"status": "active"}, headers=_auth()
        )
        assert listed.json()["data"]["total"] == 1


class TestMaintenanceLock:
    async def _open_window(self, ledger: Ledger) -> None:
        await ledger.maintenance.create_window(
            None, utc_now() - timedelta(minutes=1), 30, "admin-1"
        )

    async def test_mutation_refused(self, client: AsyncClient, ledger: Ledger) -> None:
        await self._open_window(ledger)
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount_cents": 5000}, headers=_auth()
        )
        body = resp.json()
        assert resp.status_code == 503
        assert body["code"] == 9005
        assert "maintenance" in body["message"]

    async def test_reads_allowed(self, client: AsyncClient, ledger: Ledger) -> None:
        await self._open_window(ledger)
        resp = await client.get("/api/v1/account/balance", headers=_auth())
        assert resp.status_code == 200

    async def test_admin_bypasses(self, client: AsyncClient, ledger: Ledger) -> None:
        await self._open_window(ledger)
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount_cents": 5000}, headers=_auth("admin-1")
        )
        assert resp.status_code == 200


class TestAdminRoutes:
    async def test_non_admin_refused(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/admin/accounts/user-1", headers=_auth())
        assert resp.status_code == 403
        assert resp.json()["code"] == 1005

    async def test_ban_account(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.put(
            "/api/v1/admin/accounts/user-1/status",
            json={"status": "banned", "reason": "fraud"},
            headers=_auth("admin-1"),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "banned"

        events = await client.get("/api/v1/admin/events", headers=_auth("admin-1"))
        [event] = events.json()["data"]["items"]
        assert event["event_type"] == "ACCOUNT_STATUS_CHANGED"

    async def test_negative_balance_edit_rejected(
        self, client: AsyncClient, ledger: Ledger
    ) -> None:
        resp = await client.patch(
            "/api/v1/admin/accounts/user-1",
            json={"main_balance_cents": -5},
            headers=_auth("admin-1"),
        )
        assert resp.status_code == 422
        assert ledger.accounts.accounts["user-1"].main_balance == 100000

    async def test_schedule_maintenance(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.post(
            "/api/v1/admin/maintenance",
            json={"start_at": utc_now().isoformat(), "duration_minutes": 15},
            headers=_auth("admin-1"),
        )
        assert resp.status_code == 201
        status = await client.get("/api/v1/maintenance/status")
        assert status.json()["data"]["under_maintenance"] is True

    async def test_oversized_balance_edit_rejected(
        self, client: AsyncClient, ledger: Ledger
    ) -> None:
        resp = await client.patch(
            "/api/v1/admin/accounts/user-1",
            json={"commission_balance_cents": 2**63},
            headers=_auth("admin-1"),
        )
        assert resp.status_code == 422
        assert ledger.accounts.accounts["user-1"].commission_balance == 0

    async def test_list_accounts_with_search(self, client: AsyncClient, ledger: Ledger) -> None:
        ledger.accounts.accounts["user-1"].full_name = "Carla Mendes"
        resp = await client.get(
            "/api/v1/admin/accounts", params={"q": "carla"}, headers=_auth("admin-1")
        )
        body = resp.json()
        assert resp.status_code == 200
        assert [a["account_id"] for a in body["data"]["items"]] == ["user-1"]
        assert body["data"]["has_more"] is False

    async def test_list_accounts_needs_admin(self, client: AsyncClient, ledger: Ledger) -> None:
        resp = await client.get("/api/v1/admin/accounts", headers=_auth())
        assert resp.status_code == 403

    async def test_delete_account_refused_while_funded(
        self, client: AsyncClient, ledger: Ledger
    ) -> None:
        resp = await client.delete("/api/v1/admin/accounts/user-1", headers=_auth("admin-1"))
        assert resp.status_code == 422
        assert resp.json()["code"] == 2004
        assert "user-1" in ledger.accounts.accounts

    async def test_delete_empty_account(self, client: AsyncClient, ledger: Ledger) -> None:
        ledger.accounts.accounts["user-1"].main_balance = 0
        resp = await client.delete("/api/v1/admin/accounts/user-1", headers=_auth("admin-1"))
        assert resp.status_code == 200
        assert resp.json()["data"] == {"deleted": True, "account_id": "user-1"}

        gone = await client.get("/api/v1/admin/accounts/user-1", headers=_auth("admin-1"))
        assert gone.status_code == 404

    async def test_stats(self, client: AsyncClient, ledger: Ledger) -> None:
        row = MagicMock(total_accounts=2, pending_withdrawals=0, external_volume=30000)
        result = MagicMock()
        result.fetchone.return_value = row
        db = AsyncMock()
        db.execute.return_value = result

        async def _db():
            yield db

        app.dependency_overrides[get_db_session] = _db
        resp = await client.get("/api/v1/admin/stats", headers=_auth("admin-1"))
        assert resp.status_code == 200
        assert resp.json()["data"]["external_investment_cents"] == 30000
