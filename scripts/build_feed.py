"""Build a MiniCRM SyncFeed document from a JSON shop export.

Usage:
    python scripts/build_feed.py orders.json
    python scripts/build_feed.py orders.json --query 12,10000345.xml --output feed.xml
    python scripts/build_feed.py orders.json --check-integrity
"""

import argparse
import logging
import sys
from pathlib import Path
from xml.etree import ElementTree as ET

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config.settings import load_settings
from core.errors import FeedError
from core.observability.logging import configure_logging, get_logger
from feed.constants import SHOP_OFFSET_SIZE
from feed.integrity import check_order_integrity
from feed.sources import JsonOrderSource, build_feed

logger = get_logger("feed.cli")


def check_document(document: bytes, source: JsonOrderSource) -> int:
    """Run the grand total check on every order; returns the failure count."""
    price_decimals = source.shop_context().price_decimals
    failures = 0
    for order_element in ET.fromstring(document).iter("Order"):
        order_id = int(order_element.get("Id")) % SHOP_OFFSET_SIZE
        order = source.get_order(order_id)
        if order is None:
            continue
        try:
            check_order_integrity(order, order_element, price_decimals)
        except FeedError as e:
            failures += 1
            print(f"FAIL {e}", file=sys.stderr)
    return failures


def main() -> int:
    parser = argparse.ArgumentParser(description="Build a MiniCRM SyncFeed document")
    parser.add_argument("orders", type=Path, help="JSON shop export (shop + orders)")
    parser.add_argument("--query", default="all.xml", help='Feed query, e.g. "all.xml" or "12,34.xml"')
    parser.add_argument("--env-file", type=Path, help="Settings .env file")
    parser.add_argument("--output", type=Path, help="Write the document here instead of stdout")
    parser.add_argument(
        "--check-integrity",
        action="store_true",
        help="Compare every order's feed total with its recorded total",
    )
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    args = parser.parse_args()

    try:
        settings = load_settings(args.env_file)
        configure_logging(
            logging.DEBUG if settings.debug else logging.INFO,
            json_format=args.json_logs,
            stream=sys.stderr,
        )
        source = JsonOrderSource(args.orders)
        document = build_feed(source, args.query, settings)
    except FeedError as e:
        logger.error("Feed build failed", extra_fields={"error": str(e)})
        print(str(e), file=sys.stderr)
        return 1

    if args.output:
        args.output.write_bytes(document)
        print(f"Feed written to {args.output}")
    else:
        sys.stdout.buffer.write(document)

    if args.check_integrity:
        failures = check_document(document, source)
        if failures:
            print(f"{failures} order(s) failed the integrity check", file=sys.stderr)
            return 2
        print("All orders passed the integrity check", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
