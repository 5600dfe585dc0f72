"""Command-line interface for RateSmith."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import settings


def main(argv: Optional[list[str]] = None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="RateSmith - Pricing and content extraction for partner spreadsheets"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a pricing sheet")
    analyze_parser.add_argument("file", type=Path, help="CSV or XLSX file")
    analyze_parser.add_argument("--sheet", "-s", help="Sheet name inside an XLSX workbook")
    analyze_parser.add_argument("--json", action="store_true", help="Print the full analysis as JSON")

    # Import command
    import_parser = subparsers.add_parser(
        "import", help="Map and validate a headed table using saved templates"
    )
    import_parser.add_argument("file", type=Path, help="CSV or XLSX file with a header row")
    import_parser.add_argument("--sheet", "-s", help="Sheet name inside an XLSX workbook")
    import_parser.add_argument("--db", type=Path, help="Template database path")
    import_parser.add_argument("--json", action="store_true", help="Print records as JSON")

    # Templates command
    templates_parser = subparsers.add_parser("templates", help="Manage mapping templates")
    templates_parser.add_argument("--db", type=Path, help="Template database path")
    templates_sub = templates_parser.add_subparsers(dest="action", help="Template actions")
    templates_sub.add_parser("list", help="List saved templates")
    templates_sub.add_parser("defaults", help="Create the built-in templates")
    templates_sub.add_parser("usage", help="Show template usage analysis")
    export_parser = templates_sub.add_parser("export", help="Export templates as JSON")
    export_parser.add_argument("--output", "-o", type=Path, help="Write to file instead of stdout")
    import_templates_parser = templates_sub.add_parser("import", help="Import templates from JSON")
    import_templates_parser.add_argument("file", type=Path, help="JSON file produced by export")
    delete_parser = templates_sub.add_parser("delete", help="Delete a template")
    delete_parser.add_argument("template_id", help="Template id")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "analyze":
        run_analyze(args.file, args.sheet, args.json)
    elif args.command == "import":
        asyncio.run(run_import(args.file, args.sheet, args.db, args.json))
    elif args.command == "templates" and args.action:
        asyncio.run(run_templates(args))
    else:
        parser.print_help()
        sys.exit(1)


def configure_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _load(path: Path, sheet: Optional[str]):
    from .grid import UnsupportedFileError, load_worksheet

    try:
        return load_worksheet(path, sheet)
    except (OSError, UnsupportedFileError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def run_analyze(path: Path, sheet: Optional[str] = None, as_json: bool = False):
    """Analyze one sheet and print a summary."""
    from .pipeline import SheetImportPipeline

    worksheet = _load(path, sheet)
    pipeline = SheetImportPipeline()
    analysis = pipeline.analyze(worksheet)

    if as_json:
        print(analysis.model_dump_json(indent=2))
        return

    print(f"Sheet: {analysis.sheet_name}")
    print("=" * 40)
    if analysis.layout and analysis.layout.primary_layout:
        primary = analysis.layout.primary_layout
        print(f"Layout: {primary.type.value} ({primary.confidence:.2f})")
    if analysis.metadata:
        print(f"Resort: {analysis.metadata.resort_name.value or '-'}")
        print(f"Currency: {analysis.metadata.currency.currency}")
    if analysis.normalization:
        summary = analysis.normalization.summary
        print(
            f"Prices: {summary.total_entries} entries "
            f"({summary.available_entries} available, {summary.unavailable_entries} unavailable)"
        )
        for entry in analysis.normalization.data:
            price = entry.price if entry.is_available else "n/a"
            print(
                f"  {entry.month:<15} {entry.accommodation_type:<25} "
                f"{entry.nights}N/{entry.pax}P  {price} {entry.currency}"
            )
    if analysis.issues:
        for issue in analysis.issues.issues:
            print(f"  [{issue.severity.value}] {issue.message}")
    if analysis.processed_inclusions:
        print("Inclusions:")
        for line in pipeline.processor.format_for_display(
            analysis.processed_inclusions.items
        ):
            print(f"  {line}")
    if analysis.suggestions:
        print("Suggestions:")
        for suggestion in analysis.suggestions:
            print(f"  - {suggestion}")


async def _open_manager(db_path: Optional[Path]):
    from .mapping import SQLiteTemplateStorage, TemplateManager

    storage = SQLiteTemplateStorage(db_path)
    await storage.initialize()
    return TemplateManager(storage)


async def run_import(
    path: Path, sheet: Optional[str] = None, db_path: Optional[Path] = None, as_json: bool = False
):
    """Map a headed table to system fields and report validation results."""
    from .grid import cell_text
    from .mapping import HeadersMissingError, TabularImporter

    worksheet = _load(path, sheet)
    headers = [cell_text(value) for value in worksheet.row_values(0)]
    rows = [worksheet.row_values(row) for row in range(1, worksheet.row_count)]

    manager = await _open_manager(db_path)
    try:
        result = await TabularImporter(manager=manager).import_with_templates(headers, rows)
    except HeadersMissingError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        await manager.storage.close()

    if as_json:
        print(json.dumps(result.records, indent=2, default=str))
        return

    for mapping in result.mappings:
        print(f"{mapping.excel_column} -> {mapping.system_field} ({mapping.confidence:.2f})")
    for error in result.validation.errors:
        print(f"Mapping error: {error}")
    report = result.report
    print(
        f"Rows: {report.summary.total_rows} ({report.summary.valid_rows} valid, "
        f"{report.summary.error_rows} with errors, {report.summary.warning_rows} with warnings)"
    )
    for suggestion in report.suggestions:
        print(f"  - {suggestion}")


async def run_templates(args: argparse.Namespace):
    """Run a template management action."""
    from .mapping import TemplateNotFoundError

    manager = await _open_manager(args.db)
    try:
        if args.action == "list":
            for template in await manager.get_all_templates():
                fields = ", ".join(m.system_field for m in template.mappings)
                print(f"{template.id}  {template.name}  [{fields}]  used {template.use_count}x")
        elif args.action == "defaults":
            created = await manager.create_default_templates()
            print(f"Created {len(created)} templates")
        elif args.action == "usage":
            analysis = await manager.analyze_usage()
            print(f"Templates: {analysis.total_templates}")
            for template in analysis.most_used:
                print(f"  {template.name}: {template.use_count} uses")
            for suggestion in analysis.suggestions:
                print(f"  - {suggestion}")
        elif args.action == "export":
            data = await manager.export_templates()
            if args.output:
                args.output.write_text(data, encoding="utf-8")
                print(f"Exported templates to {args.output}")
            else:
                print(data)
        elif args.action == "import":
            try:
                imported = await manager.import_templates(args.file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                print(f"Error: {e}")
                sys.exit(1)
            print(f"Imported {len(imported)} templates")
        elif args.action == "delete":
            try:
                await manager.delete_template(args.template_id)
            except TemplateNotFoundError as e:
                print(f"Error: {e}")
                sys.exit(1)
            print(f"Deleted template {args.template_id}")
    finally:
        await manager.storage.close()


if __name__ == "__main__":
    main()
