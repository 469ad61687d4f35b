#!/usr/bin/env python
"""
Refresh a local CSV dataset from the forms API without running the server.

Usage:
    uv run python scripts/refresh_local.py \\
        https://www.cognitoforms.com/api/forms/12/entries data/events.csv \\
        --merge-source data/cities.csv --merge-column City --split-location
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.exceptions import FormsSyncError
from app.logging_config import configure_logging
from app.services.forms_client import FormsClient
from app.services.sync_service import SyncGateway, SyncRequest

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("api_url", help="Forms API URL to fetch")
    parser.add_argument("local_file_path", help="CSV file to overwrite")
    parser.add_argument("--merge-column", default="Location")
    parser.add_argument("--merge-source", default=None, help="Reference CSV")
    parser.add_argument(
        "--omit", default="", help="Comma-separated fields to drop from entries"
    )
    parser.add_argument("--split-location", action="store_true")
    return parser.parse_args(argv)


def refresh_local(argv: list[str] | None = None) -> int:
    """Run one refresh. Returns a process exit code."""
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.sync_log_level)

    request = SyncRequest(
        remote_url=args.api_url,
        local_file_path=args.local_file_path,
        merge_column=args.merge_column,
        merge_source_file=args.merge_source,
        omit_fields=[f.strip() for f in args.omit.split(",") if f.strip()],
        split_location=args.split_location,
    )

    with FormsClient(settings) as client:
        try:
            result = SyncGateway(settings, client).refresh_local_file(request)
        except FormsSyncError as e:
            logger.error("Refresh failed: %s", e)
            return 1

    print(f"Saved {result.entries_count} entries to {result.file_path}")
    return 0


if __name__ == "__main__":
    sys.exit(refresh_local())
