"""CLI entry point: ghcontributions.

Aggregates contributions across a list of GitHub accounts and a range of
years, and prints the totals as JSON:

    ghcontributions -credentials gh-tokens.json
    ghcontributions -credentials gh-tokens.json.gpg -encrypted -firstyear 2015
"""

from __future__ import annotations

import asyncio
import sys

import click
import structlog

from ghcontrib.core.credentials import (
    DEFAULT_CREDENTIALS_PATH,
    load_credentials,
    sample_credentials_json,
)
from ghcontrib.core.logging import setup_logging
from ghcontrib.engines.contribution_collector.aggregator import report
from ghcontrib.engines.contribution_collector.reporter import (
    DEFAULT_FIRST_CONTRIBUTION_YEAR,
    current_year,
)
from ghcontrib.engines.contribution_collector.runner import ContributionRunner
from ghcontrib.exceptions import CredentialsError, SerializationFailure

log = structlog.get_logger("ghcontrib.cli")


def _epilog() -> str:
    # \b keeps click from rewrapping the paragraph
    sample = "\n".join("  " + line for line in sample_credentials_json().splitlines())
    return (
        "\b\n"
        "1. Create a JSON file with a list of credentials:\n"
        "\n"
        f"{sample}\n"
        "\n"
        "\b\n"
        "2. Optionally encrypt the file using PGP/GPG,\n"
        "   and use the -encrypted flag if it is encrypted.\n"
        "\n"
        "\b\n"
        "3. Optionally set the -firstyear and -lastyear flags with four digit years.\n"
        "\n"
        "\b\n"
        "4. Pass the path to the file as the argument to the -credentials flag."
    )


@click.command(epilog=_epilog(), context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-credentials",
    "--credentials",
    "credentials_path",
    default=DEFAULT_CREDENTIALS_PATH,
    show_default=True,
    help="The file containing GitHub usernames and API token values.",
)
@click.option(
    "-encrypted",
    "--encrypted",
    is_flag=True,
    help="Whether the credentials file is PGP encrypted.",
)
@click.option(
    "-firstyear",
    "--firstyear",
    "first_year",
    type=int,
    default=DEFAULT_FIRST_CONTRIBUTION_YEAR,
    show_default=True,
    help="The first year to summarize.",
)
@click.option(
    "-lastyear",
    "--lastyear",
    "last_year",
    type=int,
    default=current_year(),
    show_default=True,
    help="The last year to summarize.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of credentials collected at the same time.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(
    ctx: click.Context,
    credentials_path: str,
    encrypted: bool,
    first_year: int,
    last_year: int,
    concurrency: int,
    verbose: bool,
) -> None:
    """GitHub summary contributions reporter.

    Aggregates contributions across a list of GitHub accounts, and across
    a range of years, including total commits, total count of
    repositories contributed to, and total other contributions (pull
    requests, pull request reviews and issues).
    """
    setup_logging("DEBUG" if verbose else None)

    try:
        credentials = load_credentials(credentials_path, encrypted=encrypted)
    except CredentialsError as exc:
        click.echo(ctx.get_help(), err=True)
        click.echo(f"\nError: {exc}", err=True)
        sys.exit(1)

    runner = ContributionRunner(
        first_year=first_year,
        last_year=last_year,
        concurrency=concurrency,
    )
    store, _ = asyncio.run(runner.run_all(credentials))

    try:
        output = report(store)
    except SerializationFailure as exc:
        log.error("cli.serialization_failed", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(output)


if __name__ == "__main__":
    main()
