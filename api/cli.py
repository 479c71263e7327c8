"""
`taskd` command line.

- serve:   run the API under uvicorn
- migrate: create the tasks table and exit
- fetch:   list tasks from a running server
- store:   create a task on a running server
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys

from core import config, db, logs
from tasks import client
from tasks import repository as task_repository

logger = logging.getLogger(__name__)


def _print_json(value: object) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


async def _migrate() -> None:
    database = db.Database()
    await database.connect()
    try:
        await task_repository.migrate(database)
    finally:
        await database.close()


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    logger.info("listening on %s:%s", args.host, args.port)
    uvicorn.run("main:app", host=args.host, port=args.port, log_config=None)
    return 0


def cmd_migrate(_: argparse.Namespace) -> int:
    asyncio.run(_migrate())
    logger.info("tasks table ready")
    return 0


def cmd_fetch(args: argparse.Namespace) -> int:
    _print_json(asyncio.run(client.fetch_tasks(base_url=args.url)))
    return 0


def cmd_store(args: argparse.Namespace) -> int:
    name = args.name or f"testing demo {random.randrange(1000):04d}"
    _print_json(asyncio.run(client.store_task(base_url=args.url, name=name)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskd", description="Task CRUD service.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=config.app_host())
    serve.add_argument("--port", type=int, default=config.app_port())
    serve.set_defaults(func=cmd_serve)

    migrate = sub.add_parser("migrate", help="Create the tasks table if missing.")
    migrate.set_defaults(func=cmd_migrate)

    fetch = sub.add_parser("fetch", help="List tasks from a running server.")
    fetch.add_argument("--url", default=config.api_url())
    fetch.set_defaults(func=cmd_fetch)

    store = sub.add_parser("store", help="Create a task on a running server.")
    store.add_argument("name", nargs="?", default=None)
    store.add_argument("--url", default=config.api_url())
    store.set_defaults(func=cmd_store)

    return parser


def main(argv: list[str] | None = None) -> int:
    logs.setup_logging(level=config.log_level())
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except client.TaskClientError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
