"""
Command-line interface for the BounceBan verifier
"""
import asyncio
import csv
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from core.config import settings
from core.exceptions import ConfigurationError
from core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Read input records from a CSV, JSON array or JSON-lines file"""
    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as fh:
        if suffix == ".csv":
            return [dict(row) for row in csv.DictReader(fh)]
        if suffix == ".jsonl":
            data = [json.loads(line) for line in fh if line.strip()]
        else:
            data = json.load(fh)

    if not isinstance(data, list):
        raise click.BadParameter("JSON input must be an array of records", param_hint="--in")
    for position, record in enumerate(data):
        if not isinstance(record, dict):
            raise click.BadParameter(
                f"Record {position} is {type(record).__name__}, expected an object", param_hint="--in"
            )
    return data


@click.group()
@click.version_option(version=settings.app_version)
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
def cli(verbose: bool):
    """BounceBan CLI - verify email addresses"""
    if verbose:
        setup_logging(level="DEBUG")


@cli.command()
@click.argument("email")
@click.option("--mode", type=click.Choice(["regular", "deepverify"]), default="regular", help="Verification mode")
@click.option(
    "--disable-catchall-verify",
    type=click.Choice(["0", "1"]),
    default="0",
    help="1 skips deep verification of catch-all domains",
)
@click.option("--webhook-url", default=None, help="URL notified by BounceBan when the result is ready")
def verify(email: str, mode: str, disable_catchall_verify: str, webhook_url: Optional[str]):
    """Verify a single email address"""
    from batch_runner.processor import BatchProcessor

    record = {"email": email, "mode": mode, "disable_catchall_verify": disable_catchall_verify}
    if webhook_url:
        record["webhookUrl"] = webhook_url

    try:
        results = asyncio.run(BatchProcessor().run([record]))
    except ConfigurationError as e:
        raise click.ClickException(e.message)

    click.echo(json.dumps(results[0].to_output(), indent=2))
    if not results[0].is_completed:
        sys.exit(1)


@cli.command("verify-batch")
@click.option(
    "--in",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="CSV, JSON or JSONL file of records with an 'email' column",
)
@click.option(
    "--out",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSONL output file (defaults to stdout)",
)
@click.option(
    "--concurrency", type=click.IntRange(min=0), default=None, help="Maximum jobs in flight (0 = unbounded)"
)
def verify_batch(input_path: Path, output_path: Optional[Path], concurrency: Optional[int]):
    """Verify every record in a file"""
    from batch_runner.processor import BatchProcessor
    from batch_runner.schemas import BatchSummarySchema

    records = load_records(input_path)
    logger.debug(f"Loaded {len(records)} records from {input_path}")
    click.echo(f"Verifying {len(records)} records from {input_path}...", err=True)

    processor = BatchProcessor(max_concurrent_jobs=concurrency)
    try:
        output = asyncio.run(processor.run_records(records))
    except ConfigurationError as e:
        raise click.ClickException(e.message)

    lines = "".join(json.dumps(row) + "\n" for row in output)
    if output_path:
        output_path.write_text(lines, encoding="utf-8")
    else:
        click.echo(lines, nl=False)

    summary = processor.last_summary
    if summary is not None:
        schema = BatchSummarySchema(
            total=summary.total,
            completed=summary.completed,
            failed=summary.failed,
            duration_seconds=summary.duration_seconds,
            cancelled=summary.cancelled,
            output_path=str(output_path) if output_path else None,
        )
        click.echo(schema.model_dump_json(), err=True)


@cli.command("check-key")
def check_key():
    """Check that the configured API key is accepted"""
    from gateway.exceptions import ApiFailure, AuthenticationError
    from gateway.providers.bounceban import BounceBanClient

    async def run_check() -> bool:
        async with BounceBanClient() as client:
            return await client.verify_api_key()

    try:
        settings.get_api_key()
    except ConfigurationError as e:
        raise click.ClickException(e.message)

    masked = settings.model_dump()["bounceban_api_key"]
    click.echo(f"Checking key {masked} against {settings.bounceban_base_url}...")
    try:
        asyncio.run(run_check())
    except AuthenticationError:
        raise click.ClickException("API key rejected")
    except ApiFailure as e:
        raise click.ClickException(f"Credential check failed: {e.message}")

    click.echo("✓ API key is valid")


def main():
    cli()


if __name__ == "__main__":
    main()
