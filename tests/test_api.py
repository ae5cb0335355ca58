"""HTTP contract tests for the REST API."""

from datetime import date, timedelta

import pytest

import services
from api.middleware import RateLimitMiddleware
from config import ServerConfig


STOCK = {
    "symbol": "aapl",
    "companyName": "Apple Inc.",
    "quantity": 10,
    "purchasePrice": 150,
    "purchaseDate": "2024-01-15",
    "sector": "Technology",
}


def _bond_payload(days_to_maturity=365, **overrides):
    payload = {
        "issuer": "US Treasury",
        "bondType": "treasury",
        "faceValue": 10000,
        "couponRate": 4.25,
        "maturityDate": (date.today() + timedelta(days=days_to_maturity)).isoformat(),
        "purchasePrice": 9850,
        "purchaseDate": "2024-03-01",
        "rating": "AAA",
    }
    payload.update(overrides)
    return payload


class TestHealthAndAuth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "OK"
        assert body["mode"] == "single-user"
        assert "timestamp" in body

    def test_security_headers(self, client):
        resp = client.get("/api/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "SAMEORIGIN"

    def test_verify_returns_fixed_user(self, client):
        user = client.get("/api/auth/verify").json()["user"]
        assert user == {
            "id": 1,
            "username": "portfolio_user",
            "email": "user@portfolio.com",
            "firstName": "Portfolio",
            "lastName": "User",
        }

    def test_unknown_route(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Route not found"}


class TestStocksApi:
    def test_crud_contract(self, client):
        resp = client.post("/api/stocks", json=STOCK)
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Stock added successfully"
        stock_id = body["stock"]["id"]
        assert body["stock"]["symbol"] == "AAPL"
        assert body["stock"]["currentPrice"] == 150

        fetched = client.get(f"/api/stocks/{stock_id}").json()["stock"]
        assert fetched["companyName"] == "Apple Inc."
        assert fetched["quantity"] == 10
        assert fetched["purchaseDate"] == "2024-01-15"
        assert fetched["sector"] == "Technology"

        resp = client.put(f"/api/stocks/{stock_id}", json={"currentPrice": 175})
        assert resp.status_code == 200
        updated = resp.json()["stock"]
        assert updated["currentPrice"] == 175
        assert updated["quantity"] == 10
        assert updated["unrealizedGainLoss"] == pytest.approx(250)

        resp = client.delete(f"/api/stocks/{stock_id}")
        assert resp.json() == {"message": "Stock deleted successfully"}
        resp = client.get(f"/api/stocks/{stock_id}")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Stock not found"}

    def test_summary_and_list(self, client):
        client.post("/api/stocks", json=STOCK)
        client.post("/api/stocks", json={**STOCK, "symbol": "MSFT", "companyName": "Microsoft"})

        assert [s["symbol"] for s in client.get("/api/stocks").json()["stocks"]] == ["AAPL", "MSFT"]
        summary = client.get("/api/stocks/summary").json()
        assert summary["totalStocks"] == 2
        assert summary["totalInvested"] == pytest.approx(3_000)
        assert summary["percentageReturn"] == 0

    def test_price_history(self, client):
        stock_id = client.post("/api/stocks", json=STOCK).json()["stock"]["id"]
        client.put(f"/api/stocks/{stock_id}", json={"currentPrice": 160})

        history = client.get(f"/api/stocks/{stock_id}/price-history").json()
        assert history["stockId"] == stock_id
        assert [h["price"] for h in history["history"]] == [160]

    def test_validation_error(self, client):
        resp = client.post("/api/stocks", json={**STOCK, "quantity": -1})
        assert resp.status_code == 400
        assert "quantity" in resp.json()["message"]

    def test_unknown_field_rejected(self, client):
        resp = client.post("/api/stocks", json={**STOCK, "userId": 2})
        assert resp.status_code == 400

    def test_duplicate_symbol(self, client):
        client.post("/api/stocks", json=STOCK)
        resp = client.post("/api/stocks", json=STOCK)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Stock already exists in portfolio"}

    def test_empty_update(self, client):
        stock_id = client.post("/api/stocks", json=STOCK).json()["stock"]["id"]
        resp = client.put(f"/api/stocks/{stock_id}", json={})
        assert resp.status_code == 400
        assert resp.json() == {"message": "No fields to update"}

    def test_non_integer_id(self, client):
        assert client.get("/api/stocks/abc").status_code == 400

    def test_update_missing(self, client):
        resp = client.put("/api/stocks/99", json={"quantity": 1})
        assert resp.status_code == 404


class TestBondsApi:
    def test_crud_contract(self, client):
        resp = client.post("/api/bonds", json=_bond_payload())
        assert resp.status_code == 201
        bond = resp.json()["bond"]
        assert bond["bondType"] == "treasury"
        assert bond["daysToMaturity"] == 365
        assert bond["annualCoupon"] == pytest.approx(425)

        resp = client.put(f"/api/bonds/{bond['id']}", json={"rating": "AA+"})
        assert resp.json()["bond"]["rating"] == "AA+"
        assert resp.json()["bond"]["couponRate"] == 4.25

        client.delete(f"/api/bonds/{bond['id']}")
        resp = client.get(f"/api/bonds/{bond['id']}")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Bond not found"}

    def test_past_maturity_rejected(self, client):
        resp = client.post("/api/bonds", json=_bond_payload(days_to_maturity=-1))
        assert resp.status_code == 400

    def test_invalid_bond_type(self, client):
        resp = client.post("/api/bonds", json=_bond_payload(bondType="junk"))
        assert resp.status_code == 400

    def test_summary_and_upcoming(self, client):
        client.post("/api/bonds", json=_bond_payload())
        client.post("/api/bonds", json=_bond_payload(days_to_maturity=45, issuer="Acme"))

        summary = client.get("/api/bonds/summary").json()
        assert summary["totalBonds"] == 2
        assert summary["totalAnnualIncome"] == pytest.approx(850)

        upcoming = client.get("/api/bonds/upcoming-maturities").json()["upcomingMaturities"]
        assert [b["issuer"] for b in upcoming] == ["Acme"]
        assert upcoming[0]["daysToMaturity"] == 45


class TestCashflowApi:
    def _add(self, client, **overrides):
        payload = {
            "type": "income",
            "category": "Salary",
            "amount": 5000,
            "description": "Monthly salary",
            "date": date.today().isoformat(),
            "isRecurring": True,
            "recurringFrequency": "monthly",
        }
        payload.update(overrides)
        return client.post("/api/cashflow", json=payload)

    def test_crud_contract(self, client):
        resp = self._add(client, tags=["job"])
        assert resp.status_code == 201
        entry = resp.json()["cashflow"]
        assert entry["recurringFrequency"] == "monthly"
        assert entry["tags"] == ["job"]

        resp = client.put(f"/api/cashflow/{entry['id']}", json={"amount": 5200})
        assert resp.json()["cashflow"]["amount"] == 5200
        assert resp.json()["cashflow"]["category"] == "Salary"

        client.delete(f"/api/cashflow/{entry['id']}")
        resp = client.get(f"/api/cashflow/{entry['id']}")
        assert resp.json() == {"message": "Cashflow entry not found"}

    def test_list_filters(self, client):
        self._add(client)
        self._add(client, type="expense", category="Rent", amount=1500, description="Rent",
                  isRecurring=False, recurringFrequency=None)

        expenses = client.get("/api/cashflow", params={"type": "expense"}).json()["cashflows"]
        assert [e["category"] for e in expenses] == ["Rent"]
        everything = client.get("/api/cashflow", params={"type": "bogus"}).json()["cashflows"]
        assert len(everything) == 2
        old = client.get("/api/cashflow", params={"endDate": "2000-01-01"}).json()["cashflows"]
        assert old == []

    def test_summary_and_categories(self, client):
        self._add(client)
        self._add(client, type="expense", category="Rent", amount=1000, description="Rent",
                  isRecurring=False, recurringFrequency=None)

        summary = client.get("/api/cashflow/summary", params={"period": "weekly"}).json()
        assert summary["period"] == "weekly"
        assert summary["netCashflow"] == pytest.approx(4_000)
        assert summary["savingsRate"] == pytest.approx(80)

        categories = client.get("/api/cashflow/categories").json()["categories"]
        assert categories[0] == {
            "category": "Salary",
            "type": "income",
            "totalAmount": 5000,
            "transactionCount": 1,
            "averageAmount": 5000,
        }

    def test_long_tag_rejected(self, client):
        assert self._add(client, tags=["x" * 51]).status_code == 400


class TestPortfolioApi:
    @pytest.fixture
    def seeded(self, client):
        stock_id = client.post("/api/stocks", json=STOCK).json()["stock"]["id"]
        client.put(f"/api/stocks/{stock_id}", json={"currentPrice": 240})
        client.post("/api/bonds", json=_bond_payload(days_to_maturity=5, purchasePrice=1000, faceValue=1000))
        return client

    def test_overview(self, seeded):
        body = seeded.get("/api/portfolio/overview").json()
        assert body["overview"]["totalCurrentValue"] == pytest.approx(3_400)
        assert body["overview"]["totalAssets"] == 2
        assert body["stocks"]["gainLoss"] == pytest.approx(900)
        assert body["bonds"]["annualIncome"] == pytest.approx(42.5)
        assert set(body["cashflow"]) == {"recentIncome", "recentExpenses", "netCashflow"}

    def test_allocation(self, seeded):
        body = seeded.get("/api/portfolio/allocation").json()
        assert body["totalValue"] == pytest.approx(3_400)
        assert [a["name"] for a in body["assetClasses"]] == ["Stocks", "Bonds"]
        assert body["stockSectors"][0]["sector"] == "Technology"
        assert body["bondTypes"][0]["type"] == "treasury"

    def test_performance_uses_return_key(self, seeded):
        body = seeded.get("/api/portfolio/performance", params={"period": "all"}).json()
        assert body["period"] == "all"
        assert body["stocks"][0]["return"] == pytest.approx(900)
        assert body["stocks"][0]["currentValue"] == pytest.approx(2_400)

    def test_alerts(self, seeded):
        alerts = seeded.get("/api/portfolio/alerts").json()["alerts"]
        assert [a["type"] for a in alerts] == ["bond_maturity", "significant_gain"]
        assert alerts[0]["severity"] == "high"
        assert alerts[0]["data"]["daysToMaturity"] == 5
        assert alerts[1]["message"] == "AAPL has gained 60.0%"
        assert alerts[1]["severity"] == "high"

    def test_snapshots(self, seeded):
        resp = seeded.post("/api/portfolio/snapshots")
        assert resp.status_code == 201
        assert resp.json()["totalPortfolioValue"] == pytest.approx(3_400)
        seeded.post("/api/portfolio/snapshots")

        snapshots = seeded.get("/api/portfolio/snapshots").json()["snapshots"]
        assert len(snapshots) == 1


class TestErrorHandling:
    def test_rate_limit(self, make_client):
        with make_client(ServerConfig(rate_limit_max_requests=3)) as client:
            statuses = [client.get("/api/health").status_code for _ in range(4)]
            resp = client.get("/api/health")

        assert statuses == [200, 200, 200, 429]
        assert resp.json() == {"message": "Too many requests, please try again later."}
        assert resp.headers["X-RateLimit-Remaining"] == "0"

    def _boom(self):
        raise RuntimeError("boom")

    def test_unhandled_error_hides_detail(self, make_client, monkeypatch):
        monkeypatch.setattr(services, "list_stocks", self._boom)
        server = ServerConfig(rate_limit_enabled=False)
        with make_client(server, raise_server_exceptions=False) as client:
            resp = client.get("/api/stocks")

        assert resp.status_code == 500
        assert resp.json() == {"message": "Something went wrong!", "error": {}}

    def test_unhandled_error_in_development(self, make_client, monkeypatch):
        monkeypatch.setattr(services, "list_stocks", self._boom)
        server = ServerConfig(rate_limit_enabled=False, environment="development")
        with make_client(server, raise_server_exceptions=False) as client:
            resp = client.get("/api/stocks")

        assert resp.json() == {"message": "Something went wrong!", "error": "boom"}

    def test_unhandled_error_keeps_cors_and_security_headers(self, make_client, monkeypatch):
        monkeypatch.setattr(services, "list_stocks", self._boom)
        server = ServerConfig(rate_limit_enabled=False)
        with make_client(server, raise_server_exceptions=False) as client:
            resp = client.get("/api/stocks", headers={"Origin": server.frontend_origin})

        assert resp.status_code == 500
        assert resp.headers["Access-Control-Allow-Origin"] == server.frontend_origin
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.json()["message"] == "Something went wrong!"


class TestRateLimitWindows:
    def test_expired_clients_are_dropped(self):
        now = [0.0]
        limiter = RateLimitMiddleware(None, max_requests=5, window_seconds=10, clock=lambda: now[0])
        limiter._register_hit("10.0.0.1")
        limiter._register_hit("10.0.0.2")

        now[0] = 11.0
        count, _ = limiter._register_hit("10.0.0.3")

        assert count == 1
        assert set(limiter._hits) == {"10.0.0.3"}

    def test_active_window_is_kept(self):
        now = [0.0]
        limiter = RateLimitMiddleware(None, max_requests=5, window_seconds=10, clock=lambda: now[0])
        limiter._register_hit("10.0.0.1")
        now[0] = 5.0
        limiter._register_hit("10.0.0.2")

        now[0] = 12.0
        count, _ = limiter._register_hit("10.0.0.2")

        assert count == 2
        assert set(limiter._hits) == {"10.0.0.2"}


class TestTrailingSlash:
    @pytest.mark.parametrize("path", ["/api/stocks/", "/api/bonds/", "/api/cashflow/"])
    def test_collection_answers_without_redirect(self, client, path):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code == 200

    def test_create_with_trailing_slash(self, client):
        resp = client.post("/api/stocks/", json=STOCK, follow_redirects=False)
        assert resp.status_code == 201
        assert resp.json()["stock"]["symbol"] == "AAPL"
