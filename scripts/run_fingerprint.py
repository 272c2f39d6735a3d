#!/usr/bin/env python3
"""
Fingerprint Runner

Fingerprints one business and prints the analysis as JSON.

Usage:
    # Optional: real provider calls (mock responses are used otherwise)
    export OPENROUTER_API_KEY=your_key

    python scripts/run_fingerprint.py "Bright Smile Dental" \
        --url https://brightsmile.example \
        --category "Dental Clinic" \
        --city Austin --state TX

    # Force mock responses and compare with a previous score:
    python scripts/run_fingerprint.py "Bright Smile Dental" --mock --previous 62
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def run_fingerprint(business: dict, previous=None, mock: bool = False) -> dict:
    """Run one fingerprint and return the serialized analysis."""

    load_dotenv()

    from fingerprint_engine import create_orchestrator
    from fingerprint_engine.utils.config import Settings

    settings = Settings()
    if mock:
        settings.USE_MOCK = True
    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())

    async with create_orchestrator(settings) as orchestrator:
        logger.info(f"Capabilities: {orchestrator.get_capabilities()}")
        analysis = await orchestrator.fingerprint(business, previous=previous)

    return analysis.to_dict()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Measure a business's visibility in AI assistant answers"
    )
    parser.add_argument(
        "name",
        help="Business name (e.g., \"Bright Smile Dental\")"
    )
    parser.add_argument("--url", default="", help="Business website")
    parser.add_argument("--category", default=None, help="Business category")
    parser.add_argument("--city", default=None, help="City")
    parser.add_argument("--state", default=None, help="State or region")
    parser.add_argument("--country", default=None, help="Country")
    parser.add_argument(
        "--services",
        nargs="*",
        default=[],
        help="Services offered (first one is used in prompts)"
    )
    parser.add_argument(
        "--previous",
        type=float,
        default=None,
        help="Previous visibility score, for trend calculation"
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock responses instead of calling providers"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write JSON to this file instead of stdout"
    )

    args = parser.parse_args()

    business = {
        "name": args.name,
        "url": args.url,
        "category": args.category,
        "location": {"city": args.city, "state": args.state, "country": args.country},
        "crawl_data": {"services": args.services} if args.services else None,
    }

    result = asyncio.run(run_fingerprint(business, previous=args.previous, mock=args.mock))
    output = json.dumps(result, indent=2)

    if args.output:
        Path(args.output).write_text(output)
        print(f"\nAnalysis saved to: {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
