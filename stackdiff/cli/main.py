"""Main CLI entry point for stackdiff."""

import argparse
import sys
from typing import Optional

from .commands import run_diff


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the stackdiff CLI."""
    parser = argparse.ArgumentParser(
        prog='stackdiff',
        description='Compare compiled CloudFormation templates against deployed stacks'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    diff_parser = subparsers.add_parser('diff', help='Diff the service against its deployed stack')
    diff_parser.add_argument(
        'service_file',
        type=str,
        nargs='?',
        default='serverless.yml',
        help='Path to the service definition (default: serverless.yml)'
    )
    diff_parser.add_argument(
        '--region',
        type=str,
        help='Override provider.region'
    )
    diff_parser.add_argument(
        '--stage',
        type=str,
        help='Override provider.stage'
    )
    diff_parser.add_argument(
        '--exclude',
        action='append',
        metavar='JSONPATH',
        help='Exclude matching diff entries (can be specified multiple times)'
    )
    diff_parser.add_argument(
        '--report-path',
        type=str,
        help='Write a JSON change report to this file'
    )
    diff_parser.add_argument(
        '--table-width',
        type=int,
        help='Fixed width for the rendered diff tables'
    )
    diff_parser.add_argument(
        '--skip-package',
        action='store_true',
        help='Never run the package command before diffing'
    )
    diff_parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    diff_parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    diff_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    diff_parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='info',
        help='Set log level'
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.command == 'diff':
        return run_diff(parsed_args)

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
