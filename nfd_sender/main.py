"""
NFD Vault Batch Sender — CLI entry point.

Reads a `handle,amount` list, fetches unsigned vault transfers from the NFD
API, signs them with the configured wallet and submits them to algod.
Failed payments are written to a CSV report.
"""
import asyncio
import logging
import sys
from typing import Optional

import click

from algorand_client import AlgorandClient
from config import Settings, settings as default_settings
from exceptions import ConfigurationError, InputFileError, ReportWriteError
from models import BatchResult
from services.async_executor import shutdown_executor
from services.input_service import read_payments
from services.nfd_service import NfdClient
from services.pipeline import BatchPipeline
from services.submission_service import SubmissionCoordinator
from services.throttle import ThrottleGate

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_batch(cfg: Settings, ledger: Optional[AlgorandClient] = None) -> BatchResult:
    """Build the pipeline from settings and run it over the input file."""
    payments = read_payments(cfg.input_file)
    private_key = cfg.signing_private_key

    coordinator = None
    if not cfg.dry_run:
        coordinator = SubmissionCoordinator(
            ledger or AlgorandClient.from_settings(cfg),
            confirmation_rounds=cfg.confirmation_rounds,
            concurrency=cfg.submit_concurrency,
            retry_policy=cfg.retry_policy,
        )

    async with NfdClient(
        throttle=ThrottleGate(cfg.resolver_min_interval_seconds),
        asset_id=cfg.asset_id,
        sender=cfg.effective_sender_address,
        base_url=cfg.nfd_api_base_url,
        timeout=cfg.resolver_timeout_seconds,
        retry_policy=cfg.retry_policy,
    ) as resolver:
        pipeline = BatchPipeline(
            resolver=resolver,
            private_key=private_key,
            coordinator=coordinator,
            report_path=cfg.report_file,
            dry_run=cfg.dry_run,
        )
        try:
            return await pipeline.run(payments)
        finally:
            shutdown_executor()


def _print_summary(result: BatchResult, dry_run: bool) -> None:
    if dry_run:
        click.echo(f"Dry run: {result.signed_count} signed, {len(result.dropped)} dropped")
    else:
        click.echo(
            f"Confirmed: {len(result.confirmed)}  Failed: {len(result.failed)}  "
            f"Dropped: {len(result.dropped)}"
        )
    for outcome in result.confirmed:
        click.echo(
            f"  ✅ {outcome.request.handle} {outcome.request.amount} "
            f"round={outcome.confirmed_round} tx={outcome.tx_id}"
        )
    for outcome in result.failed:
        click.echo(f"  ❌ {outcome.request.handle} {outcome.request.amount}: {outcome.error}")
    for request, error in result.dropped:
        click.echo(f"  ⚠️  {request.handle} {request.amount}: {error}")
    if result.report_path:
        click.echo(f"Failure report: {result.report_path}")


@click.command()
@click.option("--input", "input_file", type=click.Path(), help="Payment list CSV (handle,amount)")
@click.option("--report", "report_file", type=click.Path(), help="Failure report CSV path")
@click.option("--concurrency", type=click.IntRange(min=1), help="Max groups submitted at once")
@click.option("--max-retries", type=click.IntRange(min=0), help="Retries for NFD and algod calls")
@click.option("--dry-run", is_flag=True, help="Resolve and sign only; submit nothing")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(
    input_file: Optional[str],
    report_file: Optional[str],
    concurrency: Optional[int],
    max_retries: Optional[int],
    dry_run: bool,
    debug: bool,
):
    """Send NFD vault payouts for every row in the payment list."""
    setup_logging(debug=debug)

    overrides = {
        "input_file": input_file,
        "report_file": report_file,
        "submit_concurrency": concurrency,
        "max_retries": max_retries,
        "dry_run": dry_run or None,
    }
    cfg = default_settings.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )

    try:
        cfg.validate_runtime_settings()
        result = asyncio.run(run_batch(cfg))
    except ConfigurationError as e:
        click.echo(f"Configuration Error: {e}", err=True)
        sys.exit(1)
    except InputFileError as e:
        click.echo(f"Input Error: {e}", err=True)
        sys.exit(1)
    except ReportWriteError as e:
        click.echo(f"Report Error: {e}", err=True)
        sys.exit(1)

    _print_summary(result, cfg.dry_run)


if __name__ == "__main__":
    main()
