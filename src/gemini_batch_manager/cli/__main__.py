"""
`geminibm` console entry point.

Logging is configured from the raw arguments before the command group runs,
so that environment loading and the API key check are reported at the
requested verbosity.
"""

import sys
import logging

import click

from ..core.utils.environment import setup_environment, validate_required_env_vars
from .cli import cli
from .utils import setup_logging


EXIT_INTERRUPTED = 130


def _verbosity_flags(args):
    verbose = '-v' in args or '--verbose' in args
    quiet = '-q' in args or '--quiet' in args
    return verbose, quiet


def main(args=None):
    """Run the CLI with `args` (defaults to the process arguments)."""
    args = sys.argv[1:] if args is None else list(args)
    verbose, quiet = _verbosity_flags(args)

    setup_logging(verbose=verbose, quiet=quiet)
    setup_environment(verbose=verbose)
    for name in validate_required_env_vars():
        logging.debug(f"{name} is not set; commands that call the API will fail")

    try:
        cli.main(args=args, prog_name="geminibm", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        raise SystemExit(e.exit_code)
    except (click.Abort, KeyboardInterrupt):
        logging.info("Interrupted by user")
        raise SystemExit(EXIT_INTERRUPTED)


if __name__ == '__main__':
    main()
