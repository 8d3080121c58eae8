"""CLI commands for generating and exporting reports."""

import asyncio
import sys
from pathlib import Path

from rentdash.core.logging import setup_logging
from rentdash.schemas.report import ExportFormat, ReportFilters, ReportType
from rentdash.services.report_client import ReportClient
from rentdash.services.report_generator import ReportGenerator
from rentdash.services.report_store import ReportStore
from rentdash.services.report_viewer import export_report, format_view_as_text, render_report

USAGE = """Usage: python -m rentdash.cli <command>
Commands:
  types
  generate <financial|occupancy|maintenance> <start_date> <end_date> [property_id]
  export <financial|occupancy|maintenance> <start_date> <end_date> <output_file>"""


def _print_notification(title: str, description: str, variant: str) -> None:
    marker = "✗" if variant == "destructive" else "✓"
    print(f"{marker} {title}: {description}")


async def list_types(client: ReportClient | None = None) -> int:
    """Print the report types offered by the reports API."""
    async with client or ReportClient() as api:
        store = ReportStore(api)
        report_types = await store.fetch_report_types()
        if store.error:
            print(f"Error: {store.error}")
            return 1

    for report_type in report_types:
        formats = ", ".join(report_type.export_formats) or "json"
        print(f"{report_type.id}: {report_type.name} ({formats})")
        if report_type.description:
            print(f"  {report_type.description}")
    return 0


async def generate(
    report_type: str,
    start_date: str,
    end_date: str,
    property_id: str | None = None,
    client: ReportClient | None = None,
) -> int:
    """Validate filters, generate a report and print it."""
    async with client or ReportClient() as api:
        store = ReportStore(api)
        generator = ReportGenerator(store, on_notify=_print_notification, reset_delay=0)
        generator.select_report_type(report_type)
        generator.set_filter("start_date", start_date)
        generator.set_filter("end_date", end_date)
        generator.set_filter("property_id", property_id)

        print(f"Generating {generator.current_config.title} (estimated {generator.current_config.estimated_time})...")
        if not await generator.generate():
            for message in generator.validation_errors[1:]:
                print(f"  - {message}")
            return 1

        report = store.get_report(generator.selected_report_type)

    print()
    print(format_view_as_text(render_report(generator.selected_report_type, report)))
    return 0


async def export(
    report_type: str,
    start_date: str,
    end_date: str,
    output_file: str,
    client: ReportClient | None = None,
) -> int:
    """Export a report as CSV into a file."""
    filters = ReportFilters(start_date=start_date, end_date=end_date, format=ExportFormat.CSV)
    async with client or ReportClient() as api:
        store = ReportStore(api)
        exported = await export_report(store, ReportType(report_type), ExportFormat.CSV, filters)
        if exported is None:
            print(f"Error: {store.error}")
            return 1

    Path(output_file).write_bytes(exported.content)
    print(f"✓ Exported {report_type} report to {output_file} ({len(exported.content)} bytes)")
    return 0


def main() -> None:
    """CLI entry point."""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]

    try:
        if command == "types":
            exit_code = asyncio.run(list_types())
        elif command == "generate":
            if len(sys.argv) not in (5, 6):
                print("Usage: python -m rentdash.cli generate <type> <start_date> <end_date> [property_id]")
                sys.exit(1)
            exit_code = asyncio.run(generate(*sys.argv[2:]))
        elif command == "export":
            if len(sys.argv) != 6:
                print("Usage: python -m rentdash.cli export <type> <start_date> <end_date> <output_file>")
                sys.exit(1)
            exit_code = asyncio.run(export(*sys.argv[2:]))
        else:
            print(f"Unknown command: {command}")
            sys.exit(1)
    except ValueError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
