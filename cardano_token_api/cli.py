"""
Command line entry point for one-off jobs.

    python -m cardano_token_api.cli enrich [--token TOKEN_ID ...]
    python -m cardano_token_api.cli volume
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from cardano_token_api.core.config import Settings, settings
from cardano_token_api.core.errors import TokenApiError
from cardano_token_api.core.logging_setup import setup_logging
from cardano_token_api.services.container import build_services

logger = logging.getLogger(__name__)


async def run_enrich(config: Settings, token_ids: Optional[List[str]] = None) -> int:
    services = build_services(config)
    report = await services.orchestrator.run_pass(token_ids or None)
    print(
        f"Enriched {report.total_tokens} tokens: "
        f"{report.tokens_with_valid_market_caps} valid, "
        f"{report.tokens_with_invalid_market_caps} below trust threshold, "
        f"{report.failed_tokens} failed"
    )
    for rank, record in enumerate(report.top_tokens_by_market_cap_valid[:10], start=1):
        print(f"{rank:>3}. {record.ticker or record.token_id:<12} {record.market_cap:>20,.2f} ADA")
    return 0


async def run_volume(config: Settings) -> int:
    services = build_services(config)
    snapshot = await services.volume_service.refresh()
    print(f"Volume snapshot: {snapshot.total_tokens} tokens with 24h volume")
    for entry in snapshot.tokens[:10]:
        print(f"  {entry.name or entry.token_id:<20} {entry.volume_in_ada:>18,.2f} ADA ({entry.order_count} orders)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cardano-token-api")
    sub = parser.add_subparsers(dest="command", required=True)

    enrich = sub.add_parser("enrich", help="Run one enrichment pass and publish the report")
    enrich.add_argument(
        "--token", dest="tokens", action="append", default=None,
        help="Only enrich this token id (repeatable)"
    )

    sub.add_parser("volume", help="Rebuild the 24h volume snapshot")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level, settings.log_json)

    try:
        if args.command == "enrich":
            return asyncio.run(run_enrich(settings, args.tokens))
        return asyncio.run(run_volume(settings))
    except TokenApiError as e:
        logger.error("%s failed: %s", args.command, e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
