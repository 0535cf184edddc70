"""CLI entry point."""

import os
import shlex
import sys

from common.logging_config import setup_logging
from cli.repl import repl_loop, run_once


def main() -> None:
    """
    Entry point for CLI.

    With no arguments an interactive REPL starts; otherwise the arguments
    are run as a single command (e.g. `fileshelf-cli list`).
    """
    args = sys.argv[1:]
    debug = '--debug' in args
    if debug:
        args.remove('--debug')

    log_level = 'DEBUG' if debug else os.getenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('cli', log_level=log_level)
    if debug:
        logger.info("Debug logging enabled")

    if args:
        logger.info(f"Running single command: {args[0]}")
        sys.exit(run_once(shlex.join(args)))

    logger.info("CLI starting...")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
