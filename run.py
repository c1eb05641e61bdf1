#!/usr/bin/env python3
"""
Command line entry points for the host's scheduler and for local setup.

Usage:
  python run.py init-db
  python run.py seed
  python run.py cron
  python run.py event course_completed --user-id 7 --course-id 42

Serve the HTTP API with any ASGI server, e.g. ``uvicorn obf.main:app``.
"""

import argparse
import json
import logging
import sys

from obf.config import configure_logging
from obf.events import HandlerContext, dispatch, registry
from obf.extensions import db
from obf.integrations import ObfClient
from obf.services.messaging import DatabaseMessageSink
from obf.services.permissions import RoleCapabilityChecker

logger = logging.getLogger("obf.run")


def _context(session) -> HandlerContext:
    return HandlerContext(
        session=session,
        client=ObfClient.from_settings(),
        capabilities=RoleCapabilityChecker(session),
        sink=DatabaseMessageSink(session),
    )


def _run_event(name: str, payload: dict) -> int:
    session = db.session
    try:
        ok = dispatch(name, payload, _context(session))
    finally:
        db.remove_session()
    print(json.dumps({"event": name, "ok": ok}))
    return 0 if ok else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Open Badge Factory plugin")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the database tables")
    sub.add_parser("seed", help="Reset the database with demo data")
    sub.add_parser("cron", help="Run the scheduled certificate expiration check")

    ev = sub.add_parser("event", help="Deliver a host event")
    ev.add_argument("name", choices=registry.names())
    ev.add_argument("--user-id", type=int)
    ev.add_argument("--course-id", type=int)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "init-db":
        db.create_all()
        print("Database tables created.")
        return 0
    if args.command == "seed":
        from seeds.seed import main as seed_main
        seed_main()
        return 0
    if args.command == "cron":
        return _run_event("cron", {})

    payload = {k: v for k, v in (("user_id", args.user_id), ("course_id", args.course_id)) if v is not None}
    return _run_event(args.name, payload)


if __name__ == "__main__":
    sys.exit(main())
