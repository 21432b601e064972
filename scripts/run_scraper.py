"""Manual scraper runner for testing and debugging vendor selectors.

Runs one aggregation cycle (or a single vendor) against the live sites and
prints the deals it extracts.

Usage:
    python scripts/run_scraper.py
    python scripts/run_scraper.py --query "5 inch frame" --limit 5
    python scripts/run_scraper.py --vendor GetFPV
    python scripts/run_scraper.py --json
"""

import argparse
import asyncio
import json
import sys

from dealhunter.core.exceptions import VendorNotFoundError
from dealhunter.scrapers.vendors import VENDORS, require_vendor
from dealhunter.services.aggregator import DealAggregator
from dealhunter.services.cache_service import MemoryCacheService


async def run_vendor(vendor_name: str, query: str, limit: int) -> int:
    """Fetch a single vendor and display its deals.

    Returns:
        Process exit code
    """
    try:
        vendor = require_vendor(vendor_name)
    except VendorNotFoundError as e:
        print(f"\nError: {e.message}")
        print("\nAvailable vendors:")
        for v in VENDORS:
            print(f"   - {v.name}")
        return 1

    aggregator = DealAggregator(cache=MemoryCacheService())
    result = await aggregator.fetch_vendor(vendor, query)

    print(f"\n{'='*70}")
    print(f"  {vendor.name}: {result.url}")
    print(f"{'='*70}\n")

    if result.error:
        print(f"Failed: {result.error}\n")
        return 1

    _print_deals([d.to_dict() for d in result.deals], limit)
    return 0


async def run_all(query: str, limit: int, as_json: bool) -> int:
    """Run a full fan-out across every vendor and display the merged deals."""
    aggregator = DealAggregator(cache=MemoryCacheService())
    response = await aggregator.fetch_all_vendors(query, skip_cache=True)
    data = response.to_wire()

    if as_json:
        print(json.dumps(data, indent=2))
        return 0

    print(f"\n{'='*70}")
    print(f"  {'Search: ' + query if query else 'Clearance'} across {len(VENDORS)} vendors")
    print(f"{'='*70}\n")

    _print_deals(data["deals"], limit)

    if data["failed"]:
        print("Failed vendors:")
        for failure in data["failed"]:
            print(f"  - {failure['vendor']}: {failure['error']} ({failure['url']})")
        print()

    return 0


def _print_deals(deals: list, limit: int) -> None:
    if not deals:
        print("No deals found.\n")
        return

    print(f"Found {len(deals)} deals, showing {min(limit, len(deals))}\n")
    for i, deal in enumerate(deals[:limit], 1):
        print(f"[{i}] {deal['title']}")
        print(f"    Vendor: {deal['vendor']}")
        print(f"    Price: {deal['price_str']} ({deal['price_val']:.2f})")
        print(f"    URL: {deal['link']}")
        print()


def main():
    parser = argparse.ArgumentParser(description="Run FPV deal scrapers manually")
    parser.add_argument("--query", "-q", default="", help="Search query (default: clearance listings)")
    parser.add_argument("--vendor", "-v", help="Only fetch this vendor")
    parser.add_argument("--limit", "-l", type=int, default=10, help="Maximum deals to display")
    parser.add_argument("--json", action="store_true", help="Print the full API response as JSON")
    args = parser.parse_args()

    if args.vendor:
        code = asyncio.run(run_vendor(args.vendor, args.query, args.limit))
    else:
        code = asyncio.run(run_all(args.query, args.limit, args.json))
    sys.exit(code)


if __name__ == "__main__":
    main()
