"""
Local Client

Wires the local state database to the progress store and the sync engine,
for a device that keeps its watch progress in `state_database_url`.

Usage:
    python -m vidstream.client --server URL code
    python -m vidstream.client --server URL adopt ABC234
    python -m vidstream.client --server URL sync
    python -m vidstream.client --server URL continue
"""
import argparse
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

import requests
from sqlalchemy.orm import Session

from vidstream.database import SessionLocal, init_db
from vidstream.exceptions import VidstreamError
from vidstream.services.progress_store import ProgressStore, SqlKeyValueStore, format_time
from vidstream.services.sync_client import HttpSyncTransport, SyncEngine


logger = logging.getLogger(__name__)


@dataclass
class LocalClient:
    db: Session
    progress: ProgressStore
    sync: SyncEngine


@contextmanager
def local_client(
    server_url: str,
    bind=None,
    http_session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> Iterator[LocalClient]:
    """
    Open the local state database (creating its table on first use) and
    yield a progress store and sync engine sharing it.

    Args:
        server_url: base URL of the API serving /api/sync-progress
        bind: engine to use instead of the configured one
        http_session: requests session for the sync transport
    """
    init_db(bind)
    db = SessionLocal(bind=bind) if bind is not None else SessionLocal()
    try:
        storage = SqlKeyValueStore(db)
        progress = ProgressStore(storage)
        transport = HttpSyncTransport(server_url, timeout=timeout, session=http_session)
        yield LocalClient(db=db, progress=progress, sync=SyncEngine(progress, storage, transport))
    finally:
        db.close()


def _continue_watching(progress: ProgressStore) -> List[str]:
    return [
        f"{row.video_key}  {format_time(row.current_time)} / {format_time(row.duration)}"
        f"  ({int(row.percent)}%)"
        for row in progress.get_in_progress_videos()
    ]


def main(argv: Optional[List[str]] = None, bind=None, http_session=None) -> int:
    parser = argparse.ArgumentParser(description="Watch progress on this device")
    parser.add_argument("--server", required=True, help="API base URL")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("code", help="Show (or obtain) this device's sync code")
    adopt = commands.add_parser("adopt", help="Pair with an existing sync code")
    adopt.add_argument("code")
    commands.add_parser("sync", help="Pull then push progress")
    commands.add_parser("continue", help="List started, unfinished videos")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        with local_client(args.server, bind=bind, http_session=http_session) as client:
            if args.command == "code":
                print(client.sync.initialize())
            elif args.command == "adopt":
                merged = client.sync.adopt_code(args.code)
                print(f"{client.sync.active_code}: {len(merged)} videos")
            elif args.command == "sync":
                client.sync.initialize()
                client.sync.sync()
                print(f"{client.sync.active_code}: synced")
            else:
                for line in _continue_watching(client.progress):
                    print(line)
    except VidstreamError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
