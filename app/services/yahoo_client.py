from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
from urllib.parse import quote

import httpx

from app.domain.errors import UpstreamFailure, UpstreamUnavailable
from app.infra.settings import settings

log = logging.getLogger(__name__)

YAHOO_HOSTS = (
    "https://query1.finance.yahoo.com",
    "https://query2.finance.yahoo.com",
)
YAHOO_COOKIE_URL = "https://fc.yahoo.com"

SEARCH_PATH = "/v1/finance/search"
QUOTE_PATH = "/v7/finance/quote"
CRUMB_PATH = "/v1/test/getcrumb"
SUMMARY_PATH = "/v10/finance/quoteSummary/{symbol}"
CHART_PATH = "/v8/finance/chart/{symbol}"

EQUITY_LIKE_TYPES = {"EQUITY", "ETF", "ETN", "CEF", "MUTUALFUND", "FUND"}

ERROR_BODY_LIMIT = 500

T = TypeVar("T")
R = TypeVar("R")


class MirrorFailure(Exception):
    def __init__(self, failure: UpstreamFailure) -> None:
        self.failure = failure
        super().__init__(f"{failure.url}: {failure.status} {failure.status_text}")


def first_success(operation: str, candidates: Sequence[T], call: Callable[[T], R]) -> R:
    """
    Try each candidate in order and return the first success.
    Failures are logged and dropped; only the last one is kept for the error.
    """
    last: Optional[UpstreamFailure] = None
    for candidate in candidates:
        try:
            return call(candidate)
        except MirrorFailure as e:
            last = e.failure
            log.warning("%s failed on mirror %s: %s", operation, candidate, e)
    raise UpstreamUnavailable(operation, last)


@dataclass(frozen=True)
class YahooAuth:
    cookie: str
    crumb: str


def parse_set_cookie(values: Sequence[str]) -> str:
    """Collapse Set-Cookie headers into a single Cookie header value."""
    cookies: List[str] = []
    for value in values:
        for entry in value.split(","):
            pair = entry.strip().split(";")[0].strip()
            if pair and "=" in pair:
                cookies.append(pair)
    return "; ".join(cookies)


class YahooClient:
    """
    Thin Yahoo Finance client. Every operation is tried against each mirror host
    in order; the cookie+crumb handshake is best effort and, when it fails,
    calls simply go out unauthenticated.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        hosts: Sequence[str] = YAHOO_HOSTS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.hosts = tuple(h.rstrip("/") for h in hosts)
        self.timeout = timeout if timeout is not None else settings.yahoo_timeout_seconds
        self._client = httpx.Client(timeout=self.timeout, transport=transport, follow_redirects=True)
        self._auth: Optional[YahooAuth] = None
        self._auth_loaded = False
        self._auth_lock = threading.Lock()

    # ---------- lifecycle ----------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "YahooClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---------- auth ----------

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": "Mozilla/5.0",
            "Referer": "https://finance.yahoo.com",
            "Origin": "https://finance.yahoo.com",
            "Accept": "application/json,text/plain,*/*",
            "Accept-Language": "en-US,en;q=0.9",
        }
        if self._auth and self._auth.cookie:
            headers["Cookie"] = self._auth.cookie
        return headers

    def _fetch_auth(self) -> Optional[YahooAuth]:
        cookie = ""
        try:
            resp = self._client.get(YAHOO_COOKIE_URL, headers=self._headers())
            cookie = parse_set_cookie(resp.headers.get_list("set-cookie"))
        except httpx.HTTPError as e:
            log.warning("yahoo cookie request failed: %s", e)

        headers = self._headers()
        if cookie:
            headers["Cookie"] = cookie
        for host in self.hosts:
            try:
                resp = self._client.get(f"{host}{CRUMB_PATH}", headers=headers)
            except httpx.HTTPError as e:
                log.warning("yahoo crumb request failed on %s: %s", host, e)
                continue
            if resp.is_success:
                crumb = resp.text.strip()
                if crumb:
                    return YahooAuth(cookie=cookie, crumb=crumb)
        log.warning("yahoo auth unavailable; continuing unauthenticated")
        return None

    def authenticate(self) -> Optional[YahooAuth]:
        with self._auth_lock:
            if not self._auth_loaded:
                self._auth = self._fetch_auth()
                self._auth_loaded = True
        return self._auth

    # ---------- transport ----------

    def _get_once(self, url: str, params: Dict[str, Any]) -> Any:
        try:
            resp = self._client.get(url, params=params, headers=self._headers())
        except httpx.TimeoutException as e:
            raise MirrorFailure(UpstreamFailure(url=url, status=0, status_text="timeout", body=str(e)[:ERROR_BODY_LIMIT]))
        except httpx.HTTPError as e:
            raise MirrorFailure(
                UpstreamFailure(url=url, status=0, status_text="transport error", body=str(e)[:ERROR_BODY_LIMIT])
            )

        if not resp.is_success:
            raise MirrorFailure(
                UpstreamFailure(
                    url=url,
                    status=resp.status_code,
                    status_text=resp.reason_phrase,
                    body=resp.text[:ERROR_BODY_LIMIT],
                )
            )
        try:
            return resp.json()
        except ValueError:
            raise MirrorFailure(
                UpstreamFailure(
                    url=url,
                    status=resp.status_code,
                    status_text="invalid json",
                    body=resp.text[:ERROR_BODY_LIMIT],
                )
            )

    def _get_json(self, operation: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        auth = self.authenticate()
        query = dict(params or {})
        if auth and auth.crumb:
            query["crumb"] = auth.crumb
        urls = [f"{host}{path}" for host in self.hosts]
        return first_success(operation, urls, lambda url: self._get_once(url, query))

    # ---------- provider operations ----------

    def search_symbols(self, query: str) -> List[Dict[str, str]]:
        data = self._get_json(
            "search",
            SEARCH_PATH,
            {"q": query, "quotesCount": 6, "newsCount": 0, "listsCount": 0},
        )
        out: List[Dict[str, str]] = []
        for q in (data or {}).get("quotes") or []:
            if not isinstance(q, dict) or not q.get("symbol"):
                continue
            quote_type = str(q.get("quoteType") or "").upper()
            type_disp = str(q.get("typeDisp") or "").upper()
            if quote_type not in EQUITY_LIKE_TYPES and type_disp not in EQUITY_LIKE_TYPES:
                continue
            out.append(
                {
                    "symbol": q["symbol"],
                    "display_name": q.get("longname") or q.get("shortname") or q["symbol"],
                    "instrument_type": quote_type or type_disp,
                }
            )
        return out

    def get_quotes(self, symbols: Sequence[str]) -> List[Dict[str, Any]]:
        if not symbols:
            return []
        data = self._get_json("quote", QUOTE_PATH, {"symbols": ",".join(symbols)})
        result = ((data or {}).get("quoteResponse") or {}).get("result") or []
        return [q for q in result if isinstance(q, dict)]

    def get_calendar_events(self, symbol: str) -> Dict[str, Optional[int]]:
        data = self._get_json(
            "calendar",
            SUMMARY_PATH.format(symbol=quote(symbol, safe="")),
            {"modules": "calendarEvents"},
        )
        results = ((data or {}).get("quoteSummary") or {}).get("result") or []
        first = results[0] if results and isinstance(results[0], dict) else {}
        events = first.get("calendarEvents") or {}
        return {
            "ex_dividend_date": (events.get("exDividendDate") or {}).get("raw"),
            "dividend_date": (events.get("dividendDate") or {}).get("raw"),
        }

    def get_dividend_series(self, symbol: str, range_: Optional[str] = None) -> List[Dict[str, Any]]:
        data = self._get_json(
            "chart",
            CHART_PATH.format(symbol=quote(symbol, safe="")),
            {"interval": "1mo", "range": range_ or settings.yahoo_history_range, "events": "div,split"},
        )
        results = ((data or {}).get("chart") or {}).get("result") or []
        if not results:
            return []
        dividends = ((results[0] or {}).get("events") or {}).get("dividends") or {}
        return [
            {"timestamp": v.get("date"), "amount": v.get("amount")}
            for v in dividends.values()
            if isinstance(v, dict)
        ]
