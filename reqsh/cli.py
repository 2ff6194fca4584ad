"""reqsh CLI - entry point.

click hands the raw argument vector to reqsh.parser untouched; the request
grammar (``-HKey:Value``, ``path=value``, ``query==value``...) does not fit a
declarative option table.
"""

import logging
import os
import sys

import click

from reqsh.app import USAGE, build_app
from reqsh.errors import ReqshError
from reqsh.parser import parse_args

LOG_LEVEL_ENV = "REQSH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging() -> None:
    level = getattr(logging, os.environ.get(LOG_LEVEL_ENV, "WARNING").upper(), None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(format=LOG_FORMAT, level=level)
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))


@click.command(
    help=USAGE,
    add_help_option=False,
    context_settings={"ignore_unknown_options": True, "max_content_width": 88},
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def main(args):
    """Execute HTTP requests, saved calls and auth preset commands."""
    _configure_logging()

    if not args:
        click.echo(USAGE)
        sys.exit(1)

    try:
        command = parse_args(list(args))
        app = build_app(is_tty=sys.stdout.isatty())
        app.run(command)
    except ReqshError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
