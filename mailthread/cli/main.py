"""CLI entry point for the mailthread normalizer."""

import logging
import os

import click
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_LOG_LEVEL_ENV_VAR = "MAILTHREAD_LOG_LEVEL"


def _configure_logging() -> None:
    level_name = os.environ.get(_LOG_LEVEL_ENV_VAR, "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING  # keep CLI output clean; errors still surface
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )


@click.group()
def cli() -> None:
    """Normalize email threads into LLM-ready JSON and draft replies."""
    load_dotenv()
    _configure_logging()


# Import and register commands after cli is defined to avoid circular imports.
from mailthread.cli.commands import draft, normalize  # noqa: E402

cli.add_command(normalize)
cli.add_command(draft)
