# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: risk/__main__.py
# Purpose: CLI entry point for one scheduled calculation
# =============================================================================
#
# USAGE:
# python -m risk
# python -m risk --rpc-url http://localhost:8545 --verbose
# python -m risk --output public/data/fork-risk.json --dry-run
#
# OPTIONS:
# --config       Run configuration (default: config/fork_risk.yaml)
# --manifest     Contract manifest (default: contracts/augur-abis.json)
# --output       Artifact path (default: public/data/fork-risk.json)
# --rpc-url      Preferred RPC endpoint (overrides ETH_RPC_URL)
# --dry-run      Don't write the artifact, just log it
# --verbose      Enable debug logging
# --no-log-file  Log to the console only
#
# EXIT CODES:
# 0    scoring run completed and the artifact was written
# 1    the run failed; an "unknown" artifact was still attempted
# 130  interrupted
#
# =============================================================================

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from shared.config import ForkRiskConfig, load_config
from shared.exceptions import ConfigurationError
from shared.logging_config import setup_logging
from .calculator import ForkRiskCalculator, build_error_result
from .models import RiskResult
from .storage import ResultWriter

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m risk",
        description="Augur Fork Risk Calculator - score the current fork risk from on-chain disputes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m risk
  python -m risk --rpc-url http://localhost:8545
  python -m risk --dry-run --verbose

Note: The artifact is always written, even for a failed run
      (riskLevel "unknown"); the exit code tells the scheduler which it was.
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Run configuration YAML (default: config/fork_risk.yaml)",
    )

    parser.add_argument(
        "--manifest",
        type=str,
        default=None,
        help="Contract manifest JSON (default: contracts/augur-abis.json)",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Artifact path (default: public/data/fork-risk.json)",
    )

    parser.add_argument(
        "--rpc-url",
        type=str,
        default=None,
        help="Preferred RPC endpoint, tried before the public fallbacks",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Don't write the artifact, just log it",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to the console only",
    )

    return parser.parse_args(argv)


def _publish(writer: ResultWriter, result: RiskResult, dry_run: bool) -> None:
    if dry_run:
        logger.info("[DRY RUN - artifact not written]")
        logger.info(json.dumps(writer.render(result), indent=2))
        return
    writer.save(result)


def _save_error_state(
    writer: ResultWriter,
    error: BaseException,
    config: ForkRiskConfig,
    dry_run: bool,
) -> None:
    """Try to persist the "unknown" artifact; a failure here is only logged."""
    error_result = build_error_result(error, config)
    try:
        _publish(writer, error_result, dry_run)
        logger.info("Error state saved to JSON file")
    except OSError as save_error:
        logger.error(f"Failed to save error state: {save_error}")


async def run(
    config: ForkRiskConfig,
    writer: ResultWriter,
    rpc_override: Optional[str] = None,
    client_factory: Optional[Callable] = None,
    dry_run: bool = False,
) -> int:
    """
    Run one calculation and publish its artifact.

    Args:
        config: Run configuration
        writer: Artifact writer
        rpc_override: Preferred RPC endpoint
        client_factory: Web3 client factory (tests inject fakes)
        dry_run: Log instead of writing

    Returns:
        Process exit code (0 success, 1 failure)
    """
    calculator = ForkRiskCalculator(
        config,
        rpc_override=rpc_override,
        client_factory=client_factory,
    )
    try:
        result = await calculator.calculate()
        _publish(writer, result, dry_run)
    except Exception as e:
        logger.error("Fatal error during fork risk calculation:")
        logger.error(f"Error: {e}")
        logger.debug("Traceback:", exc_info=True)
        _save_error_state(writer, e, config, dry_run)
        return 1

    logger.info("Fork risk calculation completed successfully")
    logger.info(f"Results computed using RPC: {result.rpc_info.get('endpoint')}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        file_output=not args.no_log_file,
    )

    output_override = Path(args.output) if args.output else None

    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        fallback = ForkRiskConfig()
        _save_error_state(
            ResultWriter(output_override or fallback.output_path, fallback.persisted_disputes),
            e,
            fallback,
            args.dry_run,
        )
        return 1

    if args.manifest:
        config.manifest_path = Path(args.manifest)
    if output_override:
        config.output_path = output_override

    writer = ResultWriter(config.output_path, config.persisted_disputes)

    try:
        return asyncio.run(
            run(config, writer, rpc_override=args.rpc_url, dry_run=args.dry_run)
        )
    except KeyboardInterrupt:
        logger.info("Calculation interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
