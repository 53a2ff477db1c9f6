"""
Command-line interface for the terminal attribution system.

Commands:
- match: Decide a single terminal domain against a customer domain profile
- report: Attribute a terminal roster to a customer roster, with fee totals
- coverage: List customers with missing domains or no matching devices
- explain: Show the match decision of every terminal for one customer
- config: Configuration management
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .attribution import AttributionEngine
from .audit_logger import AuditLogger
from .config import (
    DEFAULT_CONFIG_PATH,
    SystemConfig,
    load_config,
    load_config_from_file,
    save_config_to_file,
)
from .domain_matcher import explain_match, normalize_domain
from .enums import CoverageStatus
from .exceptions import AttributionError, ConfigurationError
from .i18n import SUPPORTED_LANGUAGES, get_message
from .models import CustomerDomainProfile, DomainNode, TerminalDomainProfile
from .roster_source import JsonRosterSource, SupabaseRosterSource


def _resolve_config(args: argparse.Namespace) -> Optional[SystemConfig]:
    """Load configuration for a command; None (after printing why) on failure."""
    config_path = Path(args.config) if getattr(args, "config", None) else DEFAULT_CONFIG_PATH
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return None

    if config is None:
        print(f"Error: Could not load config from {config_path}", file=sys.stderr)
        return None

    if getattr(args, "language", None):
        config.language = args.language
    return config


def _create_logger(config: SystemConfig, verbose: bool) -> Optional[AuditLogger]:
    if not verbose:
        return None
    return AuditLogger.from_config(config.logging)


async def _load_supabase_rosters(
    config: SystemConfig,
) -> tuple[list[CustomerDomainProfile], list[TerminalDomainProfile]]:
    async with SupabaseRosterSource(config.supabase) as source:
        customers = await source.load_customers()
        terminals = await source.load_terminals()
    return customers, terminals


def load_rosters(
    args: argparse.Namespace,
    config: SystemConfig,
) -> Optional[tuple[list[CustomerDomainProfile], list[TerminalDomainProfile]]]:
    """
    Load both rosters from JSON files or from Supabase, as the arguments say.

    Returns:
        (customers, terminals), or None after printing an error

    Raises:
        AttributionError: If a source or a record fails
    """
    language = config.language

    if args.supabase:
        if not config.supabase.configured:
            print(get_message("cli.supabase_not_configured", language), file=sys.stderr)
            return None
        print(get_message("cli.loading_rosters", language))
        return asyncio.run(_load_supabase_rosters(config))

    if not (args.customers and args.terminals):
        print(get_message("cli.no_roster", language), file=sys.stderr)
        return None

    source = JsonRosterSource(Path(args.customers), Path(args.terminals))
    return source.load_customers(), source.load_terminals()


def cmd_match(args: argparse.Namespace) -> int:
    """Handle the 'match' command."""
    language = args.language
    hierarchy = [DomainNode(name=alias) for alias in args.alias or []]

    reason = explain_match(
        args.terminal_domain,
        args.customer_domain,
        args.ignore_main_domain,
        hierarchy,
    )
    print(get_message(
        f"match.{reason.value}",
        language,
        terminal=normalize_domain(args.terminal_domain),
        customer=normalize_domain(args.customer_domain),
    ))
    return 0 if reason.matched else 1


def cmd_report(args: argparse.Namespace) -> int:
    """Handle the 'report' command."""
    config = _resolve_config(args)
    if config is None:
        return 1
    language = config.language
    logger = _create_logger(config, args.verbose)

    try:
        rosters = load_rosters(args, config)
    except AttributionError as e:
        if logger:
            logger.log_error("cli", "Roster loading failed", e)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    if rosters is None:
        return 1
    customers, terminals = rosters

    engine = AttributionEngine(revenue_config=config.revenue, logger=logger)
    report = engine.attribute(customers, terminals)
    rollups = engine.revenue_rollup(report)
    monthly, yearly = engine.revenue_totals(rollups)
    currency = config.revenue.currency

    print(get_message("cli.summary_customers", language, count=len(customers)))
    print(get_message(
        "cli.summary_terminals", language,
        count=report.terminal_count,
        attributed=report.attributed_count,
    ))
    print(get_message("cli.summary_conflicts", language, count=len(report.conflicts)))
    print(get_message("cli.summary_unattributed", language, count=len(report.unattributed)))
    print(get_message(
        "cli.summary_revenue", language,
        monthly=monthly, yearly=yearly, currency=currency,
    ))

    if args.verbose:
        for conflict in report.conflicts:
            labels = ", ".join(c.label for c in conflict.customers)
            print(f"  ! {conflict.terminal.serial_number or '-'} "
                  f"({conflict.terminal.domain}): {labels}")

    if args.output:
        output_file = Path(args.output)
        data = {
            "attribution": report.to_dict(),
            "revenue": [r.to_dict() for r in rollups],
            "totals": {
                "monthly_fee": str(monthly),
                "yearly_fee": str(yearly),
                "currency": currency,
            },
        }
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            print(f"Error writing report: {e}", file=sys.stderr)
            return 1
        print(get_message("cli.report_written", language, path=output_file))

    return 0


def cmd_coverage(args: argparse.Namespace) -> int:
    """Handle the 'coverage' command."""
    config = _resolve_config(args)
    if config is None:
        return 1
    language = config.language
    logger = _create_logger(config, args.verbose)

    try:
        rosters = load_rosters(args, config)
    except AttributionError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    if rosters is None:
        return 1
    customers, terminals = rosters

    engine = AttributionEngine(revenue_config=config.revenue, logger=logger)
    problems = [
        coverage for coverage in engine.analyze_coverage(customers, terminals)
        if coverage.status != CoverageStatus.OK
    ]

    if not problems:
        print(get_message("cli.coverage_clean", language))
        return 0

    for coverage in problems:
        status_text = get_message(f"coverage.{coverage.status.value}", language)
        print(f"[{coverage.status.value.upper()}] {coverage.customer.label} "
              f"({coverage.customer.main_domain or '-'}): {status_text}")
    return 0


def cmd_explain(args: argparse.Namespace) -> int:
    """Handle the 'explain' command."""
    config = _resolve_config(args)
    if config is None:
        return 1
    language = config.language

    try:
        rosters = load_rosters(args, config)
    except AttributionError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    if rosters is None:
        return 1
    customers, terminals = rosters

    needle = args.customer.strip().lower()
    customer = next(
        (
            c for c in customers
            if (c.id and c.id.strip().lower() == needle)
            or (c.name and needle in c.name.lower())
        ),
        None,
    )
    if customer is None:
        print(f"Error: Customer not found: {args.customer}", file=sys.stderr)
        return 1

    engine = AttributionEngine(revenue_config=config.revenue)
    decisions = engine.explain_customer(customer, terminals)
    print(f"{customer.label}: {customer.main_domain or '-'} "
          f"(ignore_main_domain={customer.ignore_main_domain})")
    for decision in decisions:
        if args.matched_only and not decision.matched:
            continue
        message = get_message(
            f"match.{decision.reason.value}",
            language,
            terminal=decision.normalized_terminal_domain,
            customer=decision.normalized_customer_domain,
        )
        print(f"  {decision.terminal.serial_number or '-'}: {message}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  Language: {config.language}")
        print(f"  Per-device monthly fee: {config.revenue.per_device_monthly_fee} "
              f"{config.revenue.currency}")
        print(f"  Supabase URL: {config.supabase.url or '-'}")
        print(f"  Tables: {config.supabase.customers_table}, {config.supabase.terminals_table}")
        print(f"  Log level: {config.logging.level}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        config = SystemConfig(language=args.language or SystemConfig.language)
        if save_config_to_file(config, config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1
        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        help="Output language (default: from configuration)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )


def _add_roster_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--customers",
        help="JSON export of the customers table",
    )
    parser.add_argument(
        "--terminals",
        help="JSON export of the products table",
    )
    parser.add_argument(
        "--supabase",
        action="store_true",
        help="Read both tables from Supabase (SUPABASE_URL / SUPABASE_KEY)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="terminal-attribution",
        description="Attribute payment terminals to customers by domain",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'match' command
    match_parser = subparsers.add_parser(
        "match",
        help="Match one terminal domain against a customer domain",
    )
    match_parser.add_argument(
        "terminal_domain",
        help="Terminal domain (e.g., shop.example.com)",
    )
    match_parser.add_argument(
        "--customer-domain", "-d",
        required=True,
        help="Customer's main domain",
    )
    match_parser.add_argument(
        "--ignore-main-domain",
        action="store_true",
        help="Only sub-domains of the customer may match",
    )
    match_parser.add_argument(
        "--alias", "-a",
        action="append",
        help="Sub-domain alias declared in the customer's hierarchy (repeatable)",
    )
    match_parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        default=SystemConfig.language,
        help=f"Output language (default: {SystemConfig.language})",
    )
    match_parser.set_defaults(func=cmd_match)

    # 'report' command
    report_parser = subparsers.add_parser(
        "report",
        help="Attribute terminals to customers and total the fees",
    )
    _add_roster_arguments(report_parser)
    _add_common_arguments(report_parser)
    report_parser.add_argument(
        "--output", "-o",
        help="Write the full report as JSON to this file",
    )
    report_parser.set_defaults(func=cmd_report)

    # 'coverage' command
    coverage_parser = subparsers.add_parser(
        "coverage",
        help="List customers without a domain or without matching devices",
    )
    _add_roster_arguments(coverage_parser)
    _add_common_arguments(coverage_parser)
    coverage_parser.set_defaults(func=cmd_coverage)

    # 'explain' command
    explain_parser = subparsers.add_parser(
        "explain",
        help="Explain every terminal's match decision for one customer",
    )
    explain_parser.add_argument(
        "customer",
        help="Customer id, or part of the customer name",
    )
    explain_parser.add_argument(
        "--matched-only",
        action="store_true",
        help="Only show terminals that match",
    )
    _add_roster_arguments(explain_parser)
    _add_common_arguments(explain_parser)
    explain_parser.set_defaults(func=cmd_explain)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
