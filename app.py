#!/usr/bin/env python3
"""
Run script for the asset & stock ledger

Builds the database and prints ledger reports as JSON.
"""

from asset_ledger import create_app
from asset_ledger.build import build_database
from asset_ledger.utils.logger import get_logger
import argparse
import json
import sys
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = get_logger("asset_ledger.run")

REPORTS = ('valuation', 'categories', 'low-stock', 'movements', 'reconcile')


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Asset & Stock Ledger')
    parser.add_argument('--build-only', action='store_true',
                        help='Create the ledger tables and exit')
    parser.add_argument('--seed', action='store_true',
                        help='Create a starter location tree when the database has no locations')
    parser.add_argument('--report', choices=REPORTS,
                        help='Print a report as JSON')
    return parser.parse_args(argv)


def run_report(name):
    """
    Produce one report as plain data

    Args:
        name (str): One of REPORTS

    Returns:
        JSON-serialisable report data
    """
    from asset_ledger.services.reporting.ledger_report_service import LedgerReportService

    if name == 'valuation':
        return {'valuation': LedgerReportService.valuation()}
    if name == 'categories':
        return LedgerReportService.by_category()
    if name == 'low-stock':
        return [
            dict(item.to_dict(include_audit_fields=False), threshold=threshold)
            for item, threshold in LedgerReportService.low_stock()
        ]
    if name == 'movements':
        return LedgerReportService.movements_by_type()
    if name == 'reconcile':
        return LedgerReportService.reconcile()
    raise ValueError(f"Unknown report: {name}")


def main(argv=None):
    args = parse_arguments(argv)
    app = create_app()

    with app.app_context():
        build_database(seed_data=args.seed)

        if args.build_only:
            logger.info("Build completed. Exiting.")
            return 0

        if args.report:
            print(json.dumps(run_report(args.report), indent=2, default=str))

    return 0


if __name__ == '__main__':
    sys.exit(main())
