#!/usr/bin/env python3
"""
jdk-audit - Java distribution audit and update checks.

Finds installed JDKs/JREs, identifies their vendor and version, and asks the
foojay package catalog for newer builds.

Usage:
    audit.py                    # List installed distributions
    audit.py --update           # Also check for updates (network required)
    audit.py --javafx           # Check installed JavaFX SDKs
    audit.py --json --update    # Machine-readable output
"""

import argparse
import json
import os
import sys

# Add current directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from jdk_audit.catalog import CatalogClient
from jdk_audit.config import Config, default_search_paths, load_config, validate_config
from jdk_audit.environment import detect_sys_info
from jdk_audit.javafx import check_for_javafx_updates
from jdk_audit.logging_config import setup_logging
from jdk_audit.render import print_summary, render_javafx, render_table
from jdk_audit.resolver import get_available_updates
from jdk_audit.scanner import scan_distributions
from jdk_audit.snapshot import build_entries, write_snapshot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jdk-audit",
        description="Java distribution audit and update checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--update",
        action="store_true",
        help="Check the package catalog for updates (network required)",
    )
    parser.add_argument(
        "--javafx",
        action="store_true",
        help="Check installed JavaFX SDKs for updates (network required)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--snapshot",
        metavar="PATH",
        help="Write a JSON snapshot of the results to PATH",
    )
    parser.add_argument(
        "--search-path",
        action="append",
        dest="search_paths",
        metavar="DIR",
        help="Folder to search for JDKs (repeatable, replaces configured paths)",
    )
    parser.add_argument(
        "--show-unknown",
        action="store_true",
        help="Check unknown builds of OpenJDK as Oracle OpenJDK",
    )
    parser.add_argument(
        "--features",
        help="Comma-separated preview features to detect (e.g. loom,panama)",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for jdk-audit."""
    args = build_parser().parse_args(argv)

    setup_logging(verbose=args.verbose)

    try:
        config = load_config(args.config, verbose=args.verbose)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    for warning in validate_config(config):
        print(f"⚠️  {warning}", file=sys.stderr)

    return run_audit(args, config)


def run_audit(args: argparse.Namespace, config: Config) -> int:
    prefs = config.preferences
    sys_info = detect_sys_info(args.verbose)

    search_paths = args.search_paths or list(prefs.search_paths) or default_search_paths(sys_info.operating_system)
    show_unknown = args.show_unknown or prefs.show_unknown_builds
    features = args.features or prefs.features

    distributions = scan_distributions(
        search_paths,
        sys_info=sys_info,
        features=features,
        show_unknown_builds=show_unknown,
        max_workers=prefs.max_workers,
        timeout=prefs.timeout_seconds,
        scan_timeout=prefs.scan_timeout_seconds,
        verbose=args.verbose,
    )

    client = None
    if args.update or args.javafx:
        client = CatalogClient(prefs.catalog_url, timeout=prefs.timeout_seconds, cache_ttl=prefs.cache_ttl_seconds)

    updates = None
    if args.update:
        updates = get_available_updates(
            distributions,
            client,
            sys_info,
            show_unknown_builds=show_unknown,
            max_workers=prefs.max_workers,
            verbose=args.verbose,
        )

    javafx_updates = {}
    if args.javafx:
        javafx_updates = check_for_javafx_updates(prefs.javafx_search_paths, client, sys_info, verbose=args.verbose)

    entries = build_entries(distributions, updates)

    if args.json:
        doc = {"host": str(sys_info), "distributions": entries}
        if args.javafx:
            doc["javafx"] = {str(v): u.to_dict() for v, u in sorted(javafx_updates.items())}
        print(json.dumps(doc, indent=2, ensure_ascii=False))
    else:
        render_table(entries)
        if javafx_updates:
            render_javafx(javafx_updates)
        print_summary(entries)

    if args.snapshot:
        try:
            meta = write_snapshot(distributions, updates, path=args.snapshot, extra_meta={"host": str(sys_info)})
            print(f"✓ Snapshot written: {args.snapshot} ({meta['count']} distributions)", file=sys.stderr)
        except OSError as e:
            print(f"✗ {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
