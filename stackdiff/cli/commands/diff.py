"""Diff command implementation."""

import logging
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict

from stackdiff.exceptions import ConfigValidationError, StackDiffError
from stackdiff.plugin import DiffPlugin
from stackdiff.service import ServiceLoader


logger = logging.getLogger(__name__)


def configure_logging(args: Namespace) -> None:
    """Set the root log level from the CLI flags."""
    log_level = getattr(logging, args.log_level.upper())
    if args.debug:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.ERROR
    elif args.verbose:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def config_overrides(args: Namespace) -> Dict[str, Any]:
    """Diff configuration values given on the command line."""
    return {
        "excludes": args.exclude,
        "reportPath": args.report_path,
        "tableWidth": args.table_width,
    }


def run_diff(args: Namespace) -> int:
    """
    Run one diff for the service file in ``args``.

    Returns 0 whether or not differences were found, 2 for invalid
    configuration and 1 for any other failure.
    """
    configure_logging(args)

    service_file = Path(args.service_file).resolve()
    if not service_file.exists():
        logger.error(f"Service file not found: {service_file}")
        return 1

    try:
        logger.debug(f"Loading service definition: {service_file}")
        service = ServiceLoader().load(
            service_file,
            overrides={"region": args.region, "stage": args.stage},
        )

        plugin = DiffPlugin(
            service,
            log=logging.getLogger("stackdiff"),
            config_overrides=config_overrides(args),
        )
        plugin.run(package=not args.skip_package)
        return 0

    except ConfigValidationError as e:
        for error in e.errors:
            if error.path:
                logger.error(f"Validation error at '{error.path}': {error.message}")
            else:
                logger.error(f"Validation error: {error.message}")
        return e.exit_code
    except StackDiffError as e:
        logger.error(e.message)
        return e.exit_code
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
