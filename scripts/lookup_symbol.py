#!/usr/bin/env python3
"""
Print the derived dividend detail for one symbol as JSON.

Runs the same chain the /api/stocks/{symbol} route does (quote, calendar
summary, chart series) straight against Yahoo Finance, without the web app.
"""

from __future__ import annotations

import argparse
import json
import os
import sys

# Ensure repo root on sys.path before importing app.*
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.domain.errors import DividendTrackerError  # noqa: E402
from app.services.stocks import detail_payload, get_stock_detail, search_stocks  # noqa: E402
from app.services.yahoo_client import YahooClient  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Look up dividend analytics for a symbol.")
    parser.add_argument("symbol", help="Ticker symbol, or a search phrase with --search")
    parser.add_argument("--search", action="store_true", help="Treat the argument as a free-text search.")
    parser.add_argument("--range", dest="range_", default=None, help="Chart history range (default from settings).")
    parser.add_argument("--limit", type=int, default=12, help="History rows to print (default: 12).")
    args = parser.parse_args()

    with YahooClient() as client:
        try:
            if args.search:
                out = {"results": [s.to_dict() for s in search_stocks(client, args.symbol)]}
            else:
                detail = detail_payload(get_stock_detail(client, args.symbol, range_=args.range_))
                detail["history"] = detail["history"][: args.limit]
                out = detail
        except DividendTrackerError as e:
            print(f"[lookup] failed: {e}", file=sys.stderr)
            return 1

    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
