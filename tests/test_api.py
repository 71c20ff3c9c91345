from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api.deps import get_db, get_quote_provider
from app.main import create_app
from tests.conftest import ts


@pytest.fixture
def client(db_session, apple_provider):
    app = create_app()
    Session = sessionmaker(bind=db_session.get_bind(), autoflush=False, autocommit=False, expire_on_commit=False)

    def _db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_quote_provider] = lambda: apple_provider
    with TestClient(app) as c:
        yield c


def _auth_headers(client):
    r = client.post("/api/auth/register", json={"email": "pat@example.com", "password": "pw", "name": "Pat"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['token']}"}


def test_health(client):
    r = client.get("/health/")
    assert r.status_code == 200
    assert r.json()["db_ok"] is True
    assert r.json()["status"] == "ok"
    assert r.json()["quote_mirrors"][0].startswith("https://query1")


def test_search(client):
    r = client.get("/api/stocks/search", params={"query": "apple"})
    assert r.status_code == 200
    body = r.json()
    assert 0 < body["count"] <= 5
    for s in body["results"]:
        assert s["symbol"]
        assert isinstance(s["dividend_yield"], (int, float))


def test_search_requires_query(client):
    assert client.get("/api/stocks/search").status_code == 400
    assert client.get("/api/stocks/search", params={"query": "  "}).status_code == 400


def test_search_upstream_down_is_502(client, apple_provider):
    apple_provider.fail = {"search"}
    r = client.get("/api/stocks/search", params={"query": "apple"})
    assert r.status_code == 502
    assert r.json()["detail"]["detail"]["status"] == 503


def test_stock_detail(client):
    r = client.get("/api/stocks/AAPL")
    assert r.status_code == 200
    body = r.json()
    assert body["stock"]["symbol"] == "AAPL"
    assert body["cadence"] == "quarterly"
    assert body["history"][0]["ex_date"] == "2024-11-10"
    assert body["summary"]["yearly_totals"][-1]["year"] == 2024
    assert [t["year"] for t in body["summary"]["chart"]] == [2022, 2023, 2024]
    # 0.25 a quarter at $200
    assert body["history"][0]["forward_yield"] == 0.5


def test_stock_detail_not_found(client):
    assert client.get("/api/stocks/MSFT").status_code == 404


def test_unexpected_errors_are_500_without_detail(client, apple_provider):
    def boom(symbols):
        raise RuntimeError("secret internals")

    apple_provider.get_quotes = boom
    r = client.get("/api/stocks/AAPL")
    assert r.status_code == 500
    assert "secret" not in r.text


def test_auth_flow(client):
    headers = _auth_headers(client)
    assert client.get("/api/auth/me", headers=headers).json()["user"]["email"] == "pat@example.com"
    assert client.post("/api/auth/login", json={"email": "pat@example.com", "password": "bad"}).status_code == 401
    client.post("/api/auth/logout", headers=headers)
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_portfolio_requires_session(client):
    assert client.get("/api/portfolio/holdings").status_code == 401


def test_portfolio_flow(client):
    headers = _auth_headers(client)
    r = client.post("/api/portfolio/holdings", json={"symbol": "aapl", "shares": 10, "average_cost": 100}, headers=headers)
    assert r.status_code == 200
    r = client.post("/api/portfolio/holdings", json={"symbol": "AAPL", "shares": 10, "average_cost": 120}, headers=headers)
    h = r.json()["holding"]
    assert h["shares"] == 20
    assert h["average_cost"] == 110
    assert h["total_value"] == 4000.0

    listed = client.get("/api/portfolio/holdings", headers=headers).json()
    assert listed["count"] == 1

    summary = client.get("/api/portfolio/summary", headers=headers).json()
    assert summary["total_annual_dividend"] == 20.0

    r = client.put("/api/portfolio/holdings/AAPL", json={"shares": 5}, headers=headers)
    assert r.json()["holding"]["shares"] == 5

    bad = client.post("/api/portfolio/holdings", json={"symbol": "AAPL", "shares": 0, "average_cost": 1}, headers=headers)
    assert bad.status_code == 400
    missing = client.post("/api/portfolio/holdings", json={"symbol": "MSFT", "shares": 1, "average_cost": 1}, headers=headers)
    assert missing.status_code == 404

    assert client.delete("/api/portfolio/holdings/AAPL", headers=headers).status_code == 200
    assert client.delete("/api/portfolio/holdings/AAPL", headers=headers).status_code == 404


def test_calendar_month(client):
    headers = _auth_headers(client)
    client.post("/api/portfolio/holdings", json={"symbol": "AAPL", "shares": 10, "average_cost": 100}, headers=headers)
    r = client.get("/api/calendar", params={"year": 2024, "month": 11}, headers=headers)
    assert r.status_code == 200
    days = r.json()["days"]
    assert days["2024-11-10"][0]["kind"] == "ex-dividend"
    assert days["2024-11-16"][0]["kind"] == "payment"
    line = days["2024-11-10"][0]["stocks"][0]
    assert line["symbol"] == "AAPL"
    assert line["expected_cash"] == 2.5


def test_refresh_holding_picks_up_new_price(client, apple_provider):
    headers = _auth_headers(client)
    client.post("/api/portfolio/holdings", json={"symbol": "AAPL", "shares": 10, "average_cost": 100}, headers=headers)
    apple_provider.quotes["AAPL"]["regularMarketPrice"] = 250.0

    r = client.post("/api/portfolio/holdings/aapl/refresh", headers=headers)
    assert r.status_code == 200
    h = r.json()["holding"]
    assert h["current_price"] == 250.0
    assert h["total_value"] == 2500.0
    assert h["average_cost"] == 100

    assert client.post("/api/portfolio/holdings/MSFT/refresh", headers=headers).status_code == 404


def test_calendar_defaults_to_current_utc_month(client):
    headers = _auth_headers(client)
    body = client.get("/api/calendar", headers=headers).json()
    now = datetime.now(timezone.utc)
    assert (body["year"], body["month"]) == (now.year, now.month)


def test_calendar_survives_bad_provider_dates(client, apple_provider):
    headers = _auth_headers(client)
    client.post("/api/portfolio/holdings", json={"symbol": "AAPL", "shares": 10, "average_cost": 100}, headers=headers)
    apple_provider.series["AAPL"].append({"timestamp": ts(2024, 11, 20) * 1000, "amount": 0.25})
    apple_provider.calendar["AAPL"] = {"ex_dividend_date": ts(2024, 11, 8), "dividend_date": ts(2024, 11, 14) * 1000}

    r = client.get("/api/calendar", params={"year": 2024, "month": 11}, headers=headers)
    assert r.status_code == 200
    days = r.json()["days"]
    assert [e["kind"] for e in days["2024-11-10"]] == ["ex-dividend"]
    assert not any(e["kind"] == "payment" for entries in days.values() for e in entries)
