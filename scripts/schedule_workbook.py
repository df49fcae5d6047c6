"""
Command-line utility to schedule a shop planning workbook.

Reads projects, holidays and capacities from a workbook, derives every
project's phase dates, runs capacity scheduling and writes the formatted
schedule workbook.

Usage:
    python scripts/schedule_workbook.py input_file.xlsx [output_file.xlsx]

Examples:
    # Schedule with default output name
    python scripts/schedule_workbook.py "Shop Plan.xlsx"

    # Also save the scheduled data as JSON and check it
    python scripts/schedule_workbook.py "Shop Plan.xlsx" schedule.xlsx --json shop.json --validate
"""

import argparse
import logging
import sys
from pathlib import Path

from shop_scheduler.exporters import export_shop_schedule
from shop_scheduler.parsers import ShopWorkbookParser
from shop_scheduler.persistence import ShopDataFile
from shop_scheduler.workflows import ProjectSchedulingWorkflow


def main(argv=None):
    """Main entry point for the workbook scheduler CLI."""
    parser = argparse.ArgumentParser(
        description="Schedule projects from a shop planning workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/schedule_workbook.py "Shop Plan.xlsx"
    python scripts/schedule_workbook.py input.xlsx output.xlsx --json shop.json
        """,
    )

    parser.add_argument(
        "input_file",
        type=str,
        help="Path to shop planning workbook (.xlsm or .xlsx)",
    )

    parser.add_argument(
        "output_file",
        type=str,
        nargs="?",
        help="Path for schedule workbook (optional, default: input_file_Schedule.xlsx)",
    )

    parser.add_argument(
        "--json",
        type=str,
        default=None,
        help="Also save the scheduled shop data to this JSON file",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Check the schedule and exit non-zero on rule violations",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input_file)
    if not input_path.exists():
        print(f"❌ Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    output_path = (
        Path(args.output_file) if args.output_file
        else input_path.with_name(f"{input_path.stem}_Schedule.xlsx")
    )

    try:
        store = ShopWorkbookParser(input_path).load_store()
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    workflow = ProjectSchedulingWorkflow(store)
    total_scheduled = 0
    total_unscheduled = 0
    for project in store.list_projects():
        store.update_project(workflow.scheduler.calculate_project_dates(project))
        result = workflow.schedule_project_capacity(project.id)
        total_scheduled += result.scheduled_hours
        total_unscheduled += result.unscheduled_hours

    export_shop_schedule(store, str(output_path), workflow.holidays, workflow.rules)
    print(f"✅ Scheduled {len(store.list_projects())} projects: "
          f"{total_scheduled}h placed, {total_unscheduled}h unscheduled")
    print(f"   Schedule written to {output_path}")

    if args.json:
        ShopDataFile(args.json).save(store)
        print(f"   Shop data saved to {args.json}")

    if args.validate:
        is_valid, issues = workflow.validate()
        for issue in issues:
            print(f"⚠️  {issue.category}: {issue.message}")
        if not is_valid:
            return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
