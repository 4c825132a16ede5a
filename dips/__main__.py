# =============================================================================
# DIP REGISTRY
# Module: dips/__main__.py
# Purpose: CLI entry point
# =============================================================================
#
# USAGE:
# python -m dips validate DIPs/DIP1030.md
# python -m dips load path/to/DIPs
# python -m dips list --status community_review
# python -m dips show 1030
# python -m dips transition 1030 "Final Review"
# python -m dips fetch 1030 --register
#
# GLOBAL OPTIONS:
# --config       Path to registry.yaml
# --data-dir     Override the storage directory
# --log-dir      Override the log directory
# --no-log-file  Log to console only
# --verbose      Enable debug logging
#
# =============================================================================

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dips.exceptions import DipError, ParseError
from dips.loader import fetch_document, find_documents, read_document, resolve_reference
from dips.models import ProposalDocument
from dips.parser import DocumentParser
from dips.registry import Registry
from dips.storage import RegistryStorage
from dips.validator import SchemaValidator
from shared.config import RegistryConfig, get_registry_config
from shared.enums import StatusKind
from shared.logging_config import AuditLogger, setup_logging

logger = logging.getLogger("dips.cli")


# =============================================================================
# ARGUMENTS
# =============================================================================

def _status_kind(value: str) -> StatusKind:
    key = value.strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return StatusKind[key]
    except KeyError:
        choices = ", ".join(k.name.lower() for k in StatusKind)
        raise argparse.ArgumentTypeError(f"unknown status '{value}' (choose from: {choices})")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m dips",
        description="DIP Registry - validate and track D Improvement Proposals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m dips validate DIPs/DIP1030.md
  python -m dips load ../DIPs/DIPs
  python -m dips list --status community_review
  python -m dips transition 1030 "Community Review Round 2"
  python -m dips fetch 1030 --register
        """,
    )

    parser.add_argument("--config", type=Path, default=None,
                        help="Path to registry.yaml (default: config/registry.yaml)")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Storage directory (overrides config)")
    parser.add_argument("--log-dir", type=Path, default=None,
                        help="Log directory (default: logs/)")
    parser.add_argument("--no-log-file", action="store_true",
                        help="Log to console only")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Parse and validate documents")
    p_validate.add_argument("files", nargs="+", type=Path)

    p_load = sub.add_parser("load", help="Register every DIP file in a directory")
    p_load.add_argument("directory", type=Path)
    p_load.add_argument("--pattern", default=None,
                        help="Glob pattern (default from config)")
    p_load.add_argument("--lenient", action="store_true",
                        help="Accept documents with non-blocking violations")

    p_list = sub.add_parser("list", help="List registered DIPs")
    p_list.add_argument("--status", type=_status_kind, default=None,
                        help="Only DIPs in this lifecycle state")

    p_show = sub.add_parser("show", help="Show one DIP")
    p_show.add_argument("dip_id", type=int)

    p_transition = sub.add_parser("transition", help="Move a DIP to a new state")
    p_transition.add_argument("dip_id", type=int)
    p_transition.add_argument("target", help='e.g. "Community Review Round 2", "Final Review"')

    p_fetch = sub.add_parser("fetch", help="Download a DIP by number or URL")
    p_fetch.add_argument("reference", help="DIP number (1030, DIP1030) or URL")
    p_fetch.add_argument("--register", action="store_true",
                         help="Register the fetched document")
    p_fetch.add_argument("--lenient", action="store_true",
                         help="Accept documents with non-blocking violations")

    return parser.parse_args(argv)


# =============================================================================
# FORMATTING
# =============================================================================

def print_violations(label: str, violations) -> None:
    if not violations:
        print(f"[OK] {label}")
        return
    print(f"[X]  {label}: {len(violations)} violation(s)")
    for violation in violations:
        print(f"     - {violation.check}: {violation.message}")


def print_document(document: ProposalDocument, allowed) -> None:
    print()
    print("=" * 60)
    print(f"DIP{document.id}: {document.title}")
    print("=" * 60)
    print(f"Status:          {document.status_label}")
    print(f"Review Count:    {document.review_count}")
    print(f"Author:          {document.author}")
    print(f"Implementation:  {document.implementation or '-'}")
    for name, value in document.extra_fields:
        print(f"{name + ':':<17}{value or '-'}")
    if document.source:
        print(f"Source:          {document.source}")

    if document.headings:
        print()
        print("--- SECTIONS ---")
        for section in document.sections:
            if section.heading:
                indent = "  " * max(section.level - 2, 0)
                print(f"  {indent}{section.heading}")

    print()
    print("--- NEXT STATES ---")
    if allowed:
        for status in allowed:
            print(f"  {status}")
    else:
        print("  (none - terminal)")
    print()


def print_listing(documents) -> int:
    count = 0
    print(f"{'DIP':<8} {'STATUS':<28} {'REVIEWS':<8} TITLE")
    print("-" * 72)
    for document in documents:
        print(f"{document.id:<8} {document.status_label:<28} {document.review_count:<8} {document.title}")
        count += 1
    print("-" * 72)
    print(f"{count} document(s)")
    return count


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_validate(args: argparse.Namespace) -> int:
    parser = DocumentParser()
    validator = SchemaValidator()
    failures = 0

    for path in args.files:
        try:
            document = parser.parse_file(path)
        except ParseError as e:
            print(f"[X]  {path}: {e.message}" + (f" (line {e.line})" if e.line else ""))
            failures += 1
            continue
        except OSError as e:
            print(f"[X]  {path}: {e}")
            failures += 1
            continue

        violations = validator.validate(document)
        print_violations(f"{path} (DIP{document.id})", violations)
        if violations:
            failures += 1

    return 1 if failures else 0


def cmd_load(args: argparse.Namespace, config: RegistryConfig, registry: Registry) -> int:
    pattern = args.pattern or config.document_pattern
    strict = config.strict and not args.lenient
    loaded, failed = 0, 0

    for path in find_documents(args.directory, pattern):
        try:
            document = registry.ingest(read_document(path), source=str(path), strict=strict)
        except (DipError, OSError) as e:
            print(f"[X]  {path}: {e}")
            failed += 1
            continue
        print(f"[OK] {path}: DIP{document.id} ({document.status_label})")
        loaded += 1

    print(f"\nLoaded {loaded}, failed {failed}")
    return 1 if failed else 0


def cmd_list(args: argparse.Namespace, registry: Registry) -> int:
    if args.status is not None:
        view = registry.list_by_status(args.status)
    else:
        view = registry.list()
    print_listing(view)
    return 0


def cmd_show(args: argparse.Namespace, registry: Registry) -> int:
    document = registry.get(args.dip_id)
    print_document(document, registry.allowed_targets(args.dip_id))
    return 0


def cmd_transition(args: argparse.Namespace, registry: Registry) -> int:
    try:
        updated = registry.apply_transition(args.dip_id, args.target)
    except ValueError as e:
        print(f"[X]  Invalid target: {e}")
        return 1
    print(f"[OK] DIP{updated.id} is now {updated.status_label} (review count {updated.review_count})")
    return 0


def cmd_fetch(args: argparse.Namespace, config: RegistryConfig, registry_factory) -> int:
    try:
        url = resolve_reference(args.reference, config.base_url)
    except ValueError as e:
        print(f"[X]  {e}")
        return 1

    text = fetch_document(url, timeout=config.fetch_timeout)
    if text is None:
        print(f"[X]  Could not fetch {url}")
        return 1

    document = DocumentParser().parse(text, source=url)
    violations = SchemaValidator().validate(document)
    print_violations(f"{url} (DIP{document.id})", violations)

    if args.register:
        registry = registry_factory()
        registry.register(document, strict=config.strict and not args.lenient)
        print(f"[OK] Registered DIP{document.id}")
        return 0

    return 1 if violations else 0


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = RegistryConfig(args.config) if args.config else get_registry_config()

    setup_logging(
        level=logging.DEBUG if args.verbose else config.log_level,
        file_output=config.log_to_file and not args.no_log_file,
        log_dir=args.log_dir,
    )
    for problem in config.load_errors:
        logger.warning(problem)

    def open_registry() -> Registry:
        storage = RegistryStorage(args.data_dir or config.data_dir)
        return Registry.from_storage(storage, audit=AuditLogger(args.log_dir))

    try:
        if args.command == "validate":
            return cmd_validate(args)
        if args.command == "fetch":
            return cmd_fetch(args, config, open_registry)

        registry = open_registry()
        if args.command == "load":
            return cmd_load(args, config, registry)
        if args.command == "list":
            return cmd_list(args, registry)
        if args.command == "show":
            return cmd_show(args, registry)
        if args.command == "transition":
            return cmd_transition(args, registry)
    except DipError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print(f"[X]  {e}")
        return 1
    except FileNotFoundError as e:
        print(f"[X]  {e}")
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
