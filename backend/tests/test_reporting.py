# Overview: Pytest coverage for the per-currency financial summary.

from datetime import date, timedelta

import pytest

from storeledger.kinds import RecordKind
from storeledger.services import record_service, reporting_service, settlement_service, status_service
from storeledger.validation import ValidationError


def _create(kind, store, actor, amount, currency="USD"):
    return record_service.create(kind, store.id, actor.id, {"amount": amount, "currency": currency})


def _pay(kind, record, store, actor, amount_cents, currency="USD"):
    settlement_service.record_payment(
        kind, record["id"], store.id,
        amount_cents=amount_cents, currency=currency, notes=None, actor_id=actor.id,
    )


@pytest.fixture
def populated_store(db_session, store_a, owner_a):
    """Store A with a mix of USD and VES activity."""
    _create(RecordKind.SALE, store_a, owner_a, "150.00")
    refunded = _create(RecordKind.SALE, store_a, owner_a, "20.00")
    status_service.change_status(RecordKind.SALE, refunded["id"], store_a.id, "refunded", owner_a.id)
    _create(RecordKind.PURCHASE, store_a, owner_a, "40.00")

    rent = _create(RecordKind.EXPENSE, store_a, owner_a, "100.00")
    _pay(RecordKind.EXPENSE, rent, store_a, owner_a, 3000)

    loan = _create(RecordKind.RECEIVABLE, store_a, owner_a, "50.00")
    _pay(RecordKind.RECEIVABLE, loan, store_a, owner_a, 1000)

    _create(RecordKind.SALE, store_a, owner_a, "900.00", currency="VES")
    return store_a


class TestFinancialSummary:

    def test_per_currency_rows(self, populated_store):
        summary = reporting_service.financial_summary(populated_store.id)
        rows = {row["currency"]: row for row in summary["currencies"]}

        assert sorted(rows) == ["USD", "VES"]

        usd = rows["USD"]
        # Refunded sale is not revenue
        assert usd["sales_revenue_cents"] == 15000
        assert usd["purchases_spent_cents"] == 4000
        assert usd["expenses_paid_cents"] == 3000
        assert usd["receivables_collected_cents"] == 1000
        assert usd["payables_outstanding_cents"] == 7000
        assert usd["receivables_outstanding_cents"] == 4000
        assert usd["net_cash_flow_cents"] == 15000 + 1000 - 4000 - 3000
        assert usd["net_cash_flow"] == "90.00"

        ves = rows["VES"]
        assert ves["sales_revenue_cents"] == 90000
        assert ves["purchases_spent_cents"] == 0
        assert ves["net_cash_flow_cents"] == 90000

    def test_empty_store(self, db_session, store_b):
        summary = reporting_service.financial_summary(store_b.id)
        assert summary["store_id"] == store_b.id
        assert summary["currencies"] == []

    def test_date_filter_excludes_flows_but_keeps_outstanding(self, populated_store):
        tomorrow = date.today() + timedelta(days=2)
        summary = reporting_service.financial_summary(populated_store.id, tomorrow, tomorrow)
        rows = {row["currency"]: row for row in summary["currencies"]}

        assert summary["date_from"] == tomorrow.isoformat()
        usd = rows["USD"]
        assert usd["sales_revenue_cents"] == 0
        assert usd["expenses_paid_cents"] == 0
        assert usd["payables_outstanding_cents"] == 7000
        assert "VES" not in rows

    def test_date_range_including_today(self, populated_store):
        today = date.today()
        summary = reporting_service.financial_summary(
            populated_store.id, today - timedelta(days=2), today + timedelta(days=2)
        )
        rows = {row["currency"]: row for row in summary["currencies"]}
        assert rows["USD"]["sales_revenue_cents"] == 15000

    def test_inverted_range(self, db_session, store_a):
        with pytest.raises(ValidationError):
            reporting_service.financial_summary(store_a.id, date(2024, 2, 1), date(2024, 1, 1))

    def test_other_store_not_counted(self, populated_store, store_b):
        assert reporting_service.financial_summary(store_b.id)["currencies"] == []


class TestSummaryApi:

    def test_summary_route(self, client, headers_a, populated_store):
        resp = client.get(f"/api/reports/summary?store_id={populated_store.id}", headers=headers_a)
        assert resp.status_code == 200
        assert {row["currency"] for row in resp.json["currencies"]} == {"USD", "VES"}

    def test_bad_date(self, client, headers_a, store_a):
        resp = client.get(f"/api/reports/summary?store_id={store_a.id}&date_from=yesterday", headers=headers_a)
        assert resp.status_code == 400

    def test_inverted_range_route(self, client, headers_a, store_a):
        resp = client.get(
            f"/api/reports/summary?store_id={store_a.id}&date_from=2024-02-01&date_to=2024-01-01",
            headers=headers_a,
        )
        assert resp.status_code == 400
