"""Command line entry point.

Usage examples:
  shop-reports init-db
  shop-reports seed
  shop-reports report top-users --limit 3
  shop-reports report user-orders --today 2024-01-18
  shop-reports serve --port 8000
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from shopreports import reports
from shopreports.errors import ShopReportsError
from shopreports.settings import LOG_FORMAT, settings

REPORTS = {
    "user-orders": reports.fetch_user_order_list,
    "undelivered-orders": reports.fetch_undelivered_orders,
    "recent-orders": reports.fetch_recent_orders,
    "top-users": reports.fetch_top_active_users,
    "inactive-users": reports.fetch_inactive_users,
    "top-products": reports.fetch_top_products,
    "price-extremes": reports.fetch_price_extremes,
}

LIMITED_REPORTS = {"recent-orders", "top-users", "top-products"}


def _init_db(args) -> int:
    from shopreports.database import engine, load_schema

    load_schema(engine)
    print("Schema ready:", settings.database_url)
    return 0


def _seed(args) -> int:
    from shopreports.database import SessionLocal, engine, load_schema
    from shopreports.seed import load_seed_data
    from shopreports.store import DataStore

    load_schema(engine)
    with SessionLocal() as session:
        store = DataStore(session)
        if store.count("user") and not args.force:
            print("ERROR: database already has users; pass --force to seed anyway.")
            return 2
        load_seed_data(store)
    print("Seed data loaded:", settings.database_url)
    return 0


def _report(args) -> int:
    from shopreports.database import SessionLocal

    fetch = REPORTS[args.name]
    kwargs = {}
    if args.name in LIMITED_REPORTS:
        kwargs["limit"] = args.limit if args.limit is not None else settings.default_report_limit
    elif args.limit is not None:
        print(f"ERROR: report {args.name!r} does not take --limit.")
        return 2
    if args.name == "user-orders":
        today = date.fromisoformat(args.today) if args.today else date.today()
        kwargs["clock"] = lambda: today

    with SessionLocal() as session:
        rows = fetch(session, **kwargs)
    print(json.dumps([row.model_dump(mode="json") for row in rows], indent=2))
    return 0


def _serve(args) -> int:
    import uvicorn

    uvicorn.run("shopreports.main:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shop-reports", description="Shop schema and order reports.")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Create the users, products, orders and order_details tables")
    init_db.set_defaults(func=_init_db)

    seed = sub.add_parser("seed", help="Load the demo dataset")
    seed.add_argument("--force", action="store_true", help="Seed alongside existing users (fails if a demo email is taken)")
    seed.set_defaults(func=_seed)

    report = sub.add_parser("report", help="Print a report as JSON")
    report.add_argument("name", choices=sorted(REPORTS))
    report.add_argument("--limit", type=int, help="Row limit for recent-orders, top-users and top-products")
    report.add_argument("--today", help="Current date for user-orders (YYYY-MM-DD)")
    report.set_defaults(func=_report)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    try:
        return args.func(args)
    except (ValueError, ShopReportsError) as exc:
        print(f"ERROR: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
