"""
Bucket CORS setup

Browsers upload to and stream from signed URLs directly, so the bucket
itself must allow the site's origin.

Usage:
    python -m vidstream.cors_setup [--provider r2|do] [--origin URL ...]
"""
import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from vidstream.config import Settings, get_settings
from vidstream.exceptions import VidstreamError
from vidstream.services.object_store import ObjectStore
from vidstream.services.storage_provider import resolve_provider


logger = logging.getLogger(__name__)


def apply_bucket_cors(
    settings: Settings,
    provider: Optional[str] = None,
    origins: Optional[List[str]] = None,
    store_factory=ObjectStore.from_config,
) -> Dict:
    """Apply the CORS policy to the resolved provider's bucket"""
    origins = origins or settings.cors_bucket_origins_list
    if not origins:
        raise VidstreamError("No CORS origins configured", "Set CORS_BUCKET_ORIGINS or pass --origin")

    store = store_factory(resolve_provider(settings, provider))
    logger.info(f"Configuring CORS on {store.provider}:{store.bucket} for {', '.join(origins)}")
    return store.configure_cors(origins)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Configure bucket CORS for browser uploads and streaming")
    parser.add_argument("--provider", choices=["r2", "do"], default=None)
    parser.add_argument("--origin", action="append", dest="origins", help="Allowed origin (repeatable)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        rules = apply_bucket_cors(get_settings(), args.provider, args.origins)
    except VidstreamError as e:
        logger.error(str(e))
        return 1

    print(json.dumps(rules, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
