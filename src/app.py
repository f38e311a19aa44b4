"""Application entry point for the feedingest command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.collaborators import OfflineAccountResolver, StorageProfileUpdater, StorageStatusDeleter
from adapters.sqlite_storage import SQLiteStorage
from adapters.task_queue import SQLiteTaskQueue
from core.errors import FeedIngestError
from core.ingestor import FeedIngestor
from core.models import Account

NAME = "FEEDINGEST"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/feedingest.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _open_storage() -> tuple[SQLiteStorage, SQLiteTaskQueue]:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    queue = SQLiteTaskQueue(settings.DB_PATH)
    queue.init_db()
    return storage, queue


def _init() -> None:
    _open_storage()
    logging.getLogger(__name__).info("Database ready at %s", settings.DB_PATH)


def _add_account(username: str) -> None:
    storage, _ = _open_storage()
    if storage.find_local_account(username) is not None:
        print(f"Local account {username} already exists")
        return
    url = f"https://{settings.LOCAL_DOMAIN}/users/{username}"
    account = storage.save_account(Account(username=username, url=url))
    print(f"Created local account {account.username} (id={account.id})")


def _ingest(feed_path: str, handle: str) -> int:
    logger = logging.getLogger(__name__)
    storage, queue = _open_storage()
    resolver = OfflineAccountResolver(storage, settings.LOCAL_DOMAIN)
    ingestor = FeedIngestor(
        config=settings.INGEST,
        storage=storage,
        queue=queue,
        profile_updater=StorageProfileUpdater(storage),
        deleter=StorageStatusDeleter(storage),
        account_resolver=resolver,
    )

    with open(feed_path, "rb") as handle_file:
        body = handle_file.read()

    async def _run_ingest():
        account = await resolver.resolve(handle)
        return await ingestor.ingest(body, account)

    try:
        statuses = asyncio.run(_run_ingest())
    except FeedIngestError:
        logger.exception("Failed to ingest %s", feed_path)
        return 1

    for status in statuses:
        kind = "reblog" if status.is_reblog else "reply" if status.thread else "post"
        print(f"{status.id}\t{kind}\t{status.uri}")
    return 0


def _jobs(queue_name: Optional[str]) -> None:
    _, queue = _open_storage()
    jobs = queue.pending(queue_name)
    if not jobs:
        print("No pending jobs.")
        return
    for name, payload in jobs:
        print(f"{name}\t{payload}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="feedingest")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init", help="Create the database schema")

    account_parser = subparsers.add_parser("add-account", help="Create a local account")
    account_parser.add_argument("username")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest an Atom feed file")
    ingest_parser.add_argument("feed", help="Path to the feed document")
    ingest_parser.add_argument(
        "--account",
        required=True,
        help="Owner of the feed as user@domain or profile URL",
    )

    jobs_parser = subparsers.add_parser("jobs", help="List queued follow-up jobs")
    jobs_parser.add_argument("--queue", default=None, help="Only show one queue")

    args = parser.parse_args(argv)
    _print_banner()
    _configure_logging()

    if args.command == "add-account":
        _add_account(args.username)
        return
    if args.command == "ingest":
        sys.exit(_ingest(args.feed, args.account))
    if args.command == "jobs":
        _jobs(args.queue)
        return
    if args.command == "init":
        _init()
        return
    parser.print_help()


if __name__ == "__main__":
    main()
