#!/usr/bin/env python3
# check_openlaws.py
"""
CLI for checking OpenLaws availability and resolving citations.

Usage:
    python check_openlaws.py
    python check_openlaws.py "Cal. Penal Code § 187" "18 U.S.C. § 1001" --import

Output:
    - Availability status of the OpenLaws API
    - Table of resolution outcomes for any citations given
"""
import argparse
import logging
import sys
import time

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from statute_core.api.openlaws import OpenLawsClient
from statute_core.config import load_config
from statute_core.exceptions import RemoteAPIError

load_dotenv()
console = Console()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Check OpenLaws availability and resolve statute citations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python check_openlaws.py
    python check_openlaws.py "N.J.S.A. 2C:15-1" --import
        """
    )
    parser.add_argument("citations", nargs="*", help="Citations to resolve")
    parser.add_argument("--config", default="config.yaml", help="Config file (default: config.yaml)")
    parser.add_argument("--import", dest="import_if_found", action="store_true",
                        help="Store resolved statutes in the local cache")
    parser.add_argument("--verbose", action="store_true", help="Show traversal logging")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = load_config(args.config)

    with OpenLawsClient.from_config(config) as client:
        console.print("[bold cyan]Checking OpenLaws API availability...[/bold cyan]")
        availability = client.check_availability()
        color = "green" if availability["available"] else "red"
        console.print(f"[{color}]{availability['message']}[/{color}]")

        if not args.citations:
            sys.exit(0 if availability["available"] else 1)

        table = Table(title="Citation Resolution")
        table.add_column("Citation", style="cyan")
        table.add_column("Outcome")
        table.add_column("Jurisdiction")
        table.add_column("Title")
        table.add_column("Path", style="dim")

        failures = 0
        for citation, resolution in _resolve_all(client, args.citations, args.import_if_found):
            if resolution is None:
                failures += 1
                table.add_row(citation, "[red]error[/red]", "", "", "")
                continue
            statute = resolution.statute
            outcome = resolution.outcome.value
            table.add_row(
                citation,
                f"[green]{outcome}[/green]" if statute else f"[yellow]{outcome}[/yellow]",
                statute.jurisdiction if statute else "",
                statute.title if statute else resolution.message,
                statute.id if statute else "",
            )

        console.print(table)
        sys.exit(1 if failures else 0)


def _resolve_all(client: OpenLawsClient, citations: list[str], import_if_found: bool):
    for index, citation in enumerate(citations):
        if index:
            time.sleep(client.config.BATCH_DELAY)
        try:
            yield citation, client.resolve_citation(citation, import_if_found=import_if_found)
        except RemoteAPIError as e:
            console.print(f"[red]  {citation}: {e}[/red]")
            yield citation, None


if __name__ == "__main__":
    main()
