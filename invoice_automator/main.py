#!/usr/bin/env python3
"""Invoice Automator command line: process documents, export, manage settings.

Commands:
1. ``process``: extract and normalize invoice documents concurrently, report
   batch-ID warnings, then write a single workbook or a zip archive
2. ``export``: rebuild the download from invoices saved with ``process --json``
3. ``import-customers``: merge a customer master file into the saved directory
4. ``mapping``: show, reset or edit the saved output-column schema
5. ``customers``: list the saved customer directory, add or remove one entry

Usage (from project root):
    python -m invoice_automator.main process invoices/*.pdf --profile CLINIQON_BIOTECH
    python -m invoice_automator.main process scan.jpg --output-dir out --json
    python -m invoice_automator.main export out/invoices.json
    python -m invoice_automator.main import-customers customer_master.xlsx
    python -m invoice_automator.main mapping show
    python -m invoice_automator.main mapping add Warehouse --value WH1
    python -m invoice_automator.main customers add "Acme Pharmacy" C1001
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import questionary

from invoice_automator.config import OUTPUT_DIR, get_export_config, setup_logging
from invoice_automator.directory import add_customer, import_customer_master, remove_customer
from invoice_automator.errors import SchemaError
from invoice_automator.extractor.extraction import guess_media_type
from invoice_automator.models import (
    DEFAULT_PROFILE,
    CustomerProfile,
    InvoiceData,
    InvoiceField,
    ItemField,
    MappingSource,
    ProcessStatus,
)
from invoice_automator.session import DEFAULT_MAX_WORKERS, Document, InvoiceSession
from invoice_automator.store import (
    load_customer_directory,
    load_mapping_schema,
    save_customer_directory,
    save_mapping_schema,
)
from invoice_automator.transformer.validation import check_batch_ids
from invoice_automator.writer.archive import build_download, write_download
from invoice_automator.writer.mapping import add_column, default_mapping, move_column, remove_column, update_column

if TYPE_CHECKING:
    from invoice_automator.models import MappingField

logger = setup_logging(__name__)

INVOICES_JSON_FILENAME = "invoices.json"


# =============================================================================
# Helpers
# =============================================================================


def choose_profile(value: str | None) -> CustomerProfile:
    """Resolve the customer profile from a flag or an interactive prompt.

    Parameters
    ----------
    value : str | None
        ``--profile`` value. When omitted on an interactive terminal the user
        picks from a list; otherwise the default profile is used.

    Returns
    -------
    CustomerProfile
        Selected profile.
    """
    if value:
        return CustomerProfile(value)
    if not sys.stdin.isatty():
        return DEFAULT_PROFILE

    answer = questionary.select(
        "Which customer are these invoices from?",
        choices=[questionary.Choice(title=profile.label, value=profile) for profile in CustomerProfile],
    ).ask()
    return answer or DEFAULT_PROFILE


def load_documents(paths: list[Path]) -> list[Document]:
    """Read supported files, skipping unreadable or unsupported ones."""
    documents: list[Document] = []
    for path in paths:
        try:
            media_type = guess_media_type(path)
            documents.append(Document(name=path.name, content=path.read_bytes(), media_type=media_type))
        except (OSError, ValueError) as e:
            logger.error("Skipping %s: %s", path, e)
    return documents


def print_batch_warnings(invoices: list[InvoiceData]) -> None:
    """Print invalid or missing batch IDs per invoice."""
    for invoice in invoices:
        warnings = check_batch_ids(invoice)
        if not warnings:
            continue
        print(f"\n⚠️  {invoice.reference_no or 'Unnamed invoice'}: {len(warnings)} batch ID issue(s)")
        for warning in warnings:
            print(f"  • line {warning.line_index + 1} [{warning.sku}] {warning.display_value}: {warning.message}")


def _write_invoices_json(invoices: list[InvoiceData], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / INVOICES_JSON_FILENAME
    with filepath.open("w", encoding="utf-8") as f:
        json.dump([invoice.to_dict() for invoice in invoices], f, indent=2, ensure_ascii=False)
    logger.info("Saved invoices JSON: %s", filepath)
    return filepath


# =============================================================================
# Commands
# =============================================================================


def cmd_process(args: argparse.Namespace) -> int:
    """Extract, normalize and export the given documents.

    Returns
    -------
    int
        ``0`` when at least one document was processed; ``1`` otherwise.
    """
    documents = load_documents(args.files)
    if not documents:
        logger.error("No supported documents to process")
        return 1

    profile = choose_profile(args.profile)
    directory = load_customer_directory()
    schema = load_mapping_schema()
    max_workers = int(get_export_config().get("max_workers", DEFAULT_MAX_WORKERS))

    with InvoiceSession(max_workers=max_workers) as session:
        session.submit(documents, profile, directory)
        statuses = session.wait()
        invoices = list(session.invoices)

    for status in statuses:
        if status.status == ProcessStatus.COMPLETED:
            logger.info("  ✓ %s", status.name)
        else:
            logger.error("  ✗ %s: %s", status.name, status.message)

    if not invoices:
        logger.error("No documents were processed successfully")
        return 1

    print_batch_warnings(invoices)

    output_dir = args.output_dir or OUTPUT_DIR
    if args.json:
        _write_invoices_json(invoices, output_dir)

    download = build_download(invoices, schema)
    path = write_download(download, output_dir)
    print(f"\n{len(invoices)}/{len(statuses)} invoice(s) exported to {path}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Rebuild the download from a saved invoices JSON file."""
    try:
        with args.input_json.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Could not read %s: %s", args.input_json, e)
        return 1

    if not isinstance(data, list):
        logger.error("%s must contain a JSON list of invoices", args.input_json)
        return 1

    invoices = [InvoiceData.from_dict(item) for item in data if isinstance(item, dict)]
    if not invoices:
        logger.error("No invoices found in %s", args.input_json)
        return 1

    download = build_download(invoices, load_mapping_schema())
    path = write_download(download, args.output_dir or OUTPUT_DIR)
    print(f"{len(invoices)} invoice(s) exported to {path}")
    return 0


def cmd_import_customers(args: argparse.Namespace) -> int:
    """Merge a customer master file into the saved customer directory."""
    existing = load_customer_directory()
    try:
        result = import_customer_master(existing, args.file)
    except SchemaError as e:
        logger.error("Import failed: %s", e)
        return 1

    save_customer_directory(result.merged)
    print(f"Import successful! Added: {result.added}, Updated: {result.updated}")
    return 0


def _column_at(schema: list[MappingField], position: int) -> MappingField | None:
    if 1 <= position <= len(schema):
        return schema[position - 1]
    logger.error("No column at position %s (schema has %s columns)", position, len(schema))
    return None


def _check_column_value(source: MappingSource, value: str) -> bool:
    if source == MappingSource.STATIC:
        return True
    keys = [str(key) for key in (InvoiceField if source == MappingSource.INVOICE else ItemField)]
    if value in keys:
        return True
    logger.error("'%s' is not a %s field; choose one of: %s", value, source, ", ".join(keys))
    return False


def _print_schema(schema: list[MappingField]) -> None:
    print(f"{'#':>3}  {'Header':<24} {'Source':<8} Value")
    print("-" * 56)
    for position, column in enumerate(schema, start=1):
        print(f"{position:>3}  {column.header:<24} {column.source:<8} {column.value}")


def cmd_mapping(args: argparse.Namespace) -> int:
    """Show, reset or edit the saved mapping schema.

    Columns are addressed by their 1-based position as printed by
    ``mapping show``. Every edit is saved immediately.
    """
    if args.action == "reset":
        save_mapping_schema(default_mapping())
        print("Mapping schema reset to default")
        return 0

    schema = load_mapping_schema()
    if args.action == "show":
        _print_schema(schema)
        return 0

    if args.action == "add":
        if not _check_column_value(args.source, args.value):
            return 1
        schema = add_column(schema, args.header, args.source, args.value)
        print(f"Added column {len(schema)}: {args.header}")
    else:
        column = _column_at(schema, args.position)
        if column is None:
            return 1
        if args.action == "remove":
            schema = remove_column(schema, column.id)
            print(f"Removed column: {column.header}")
        elif args.action == "move":
            schema = move_column(schema, column.id, args.to - 1)
            print(f"Moved {column.header} to position {schema.index(column) + 1}")
        else:
            changes = {
                key: value
                for key, value in (("header", args.header), ("source", args.source), ("value", args.value))
                if value is not None
            }
            if not changes:
                logger.error("Nothing to update; pass --header, --source or --value")
                return 1
            source = MappingSource(changes.get("source", column.source))
            if not _check_column_value(source, changes.get("value", column.value)):
                return 1
            schema = update_column(schema, column.id, **changes)
            print(f"Updated column {args.position}: {schema[args.position - 1].header}")

    save_mapping_schema(schema)
    _print_schema(schema)
    return 0


def cmd_customers(args: argparse.Namespace) -> int:
    """List the saved customer directory or edit single entries."""
    directory = load_customer_directory()

    if args.action == "list":
        if not directory:
            print("Customer directory is empty")
            return 0
        print(f"{'Customer Name':<40} Customer Code")
        print("-" * 56)
        for entry in sorted(directory, key=lambda e: e.key):
            print(f"{entry.customer_name:<40} {entry.customer_code}")
        return 0

    if args.action == "add":
        try:
            directory = add_customer(directory, args.name, args.code)
        except ValueError as e:
            logger.error("%s", e)
            return 1
        print(f"Saved customer: {args.name.strip()} -> {args.code.strip()}")
    else:
        remaining = remove_customer(directory, args.name)
        if len(remaining) == len(directory):
            logger.error("Customer not found: %s", args.name)
            return 1
        directory = remaining
        print(f"Removed customer: {args.name.strip()}")

    save_customer_directory(directory)
    return 0


# =============================================================================
# CLI
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="invoice-automator",
        description="Extract invoices into spreadsheet rows and manage export settings.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  invoice-automator process a.pdf b.jpg --profile SLIM_HEALTHCARE
  invoice-automator process scans/*.png --json         # Also save invoices.json
  invoice-automator export data/output/invoices.json
  invoice-automator import-customers customer_master.csv
  invoice-automator mapping move 11 2                 # Lot no. becomes column 2
  invoice-automator mapping reset
  invoice-automator customers add "Acme Pharmacy" C1001
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    process = subparsers.add_parser("process", help="Extract and export invoice documents")
    process.add_argument("files", type=Path, nargs="+", help="PDF or image files")
    process.add_argument(
        "--profile",
        "-p",
        choices=[profile.value for profile in CustomerProfile],
        help="Customer layout (prompted when omitted on a terminal)",
    )
    process.add_argument("--output-dir", "-o", type=Path, help="Output directory (default: data/output)")
    process.add_argument("--json", action="store_true", help="Also save normalized invoices as JSON")
    process.set_defaults(func=cmd_process)

    export = subparsers.add_parser("export", help="Export invoices saved with 'process --json'")
    export.add_argument("input_json", type=Path, help="Invoices JSON file")
    export.add_argument("--output-dir", "-o", type=Path, help="Output directory (default: data/output)")
    export.set_defaults(func=cmd_export)

    import_customers = subparsers.add_parser("import-customers", help="Merge a customer master file (.xlsx/.xls/.csv)")
    import_customers.add_argument("file", type=Path, help="Customer master file")
    import_customers.set_defaults(func=cmd_import_customers)

    mapping = subparsers.add_parser("mapping", help="Show, reset or edit output columns")
    mapping_actions = mapping.add_subparsers(dest="action", required=True)
    mapping_actions.add_parser("show", help="Print the columns in order")
    mapping_actions.add_parser("reset", help="Restore the default columns")
    source_choices = list(MappingSource)

    add = mapping_actions.add_parser("add", help="Append a column")
    add.add_argument("header", help="Column header")
    add.add_argument("--source", "-s", type=MappingSource, choices=source_choices, default=MappingSource.STATIC)
    add.add_argument("--value", "-v", default="", help="Field key (invoice/item) or literal text (static)")

    remove = mapping_actions.add_parser("remove", help="Delete a column")
    remove.add_argument("position", type=int, help="1-based column position")

    update = mapping_actions.add_parser("update", help="Change a column's header, source or value")
    update.add_argument("position", type=int, help="1-based column position")
    update.add_argument("--header")
    update.add_argument("--source", "-s", type=MappingSource, choices=source_choices)
    update.add_argument("--value", "-v")

    move = mapping_actions.add_parser("move", help="Move a column to another position")
    move.add_argument("position", type=int, help="1-based column position")
    move.add_argument("to", type=int, help="New 1-based position")
    mapping.set_defaults(func=cmd_mapping)

    customers = subparsers.add_parser("customers", help="List, add or remove saved customers")
    customer_actions = customers.add_subparsers(dest="action", required=True)
    customer_actions.add_parser("list", help="Print the customer directory")
    add_customer_parser = customer_actions.add_parser("add", help="Add or update one customer")
    add_customer_parser.add_argument("name", help="Customer name")
    add_customer_parser.add_argument("code", help="Customer code")
    remove_customer_parser = customer_actions.add_parser("remove", help="Remove one customer by name")
    remove_customer_parser.add_argument("name", help="Customer name (case-insensitive)")
    customers.set_defaults(func=cmd_customers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and run the selected command.

    Returns
    -------
    int
        ``0`` on success; ``1`` otherwise.
    """
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
