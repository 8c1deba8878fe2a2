"""
Command-line entry point.

    python main.py serve              run the API (uvicorn, HOST/PORT from env)
    python main.py import <url>       run one import and print the JSON result
"""

import asyncio
import logging
import sys
from functools import wraps

import click
import orjson
import uvicorn

from config import get_settings
from errors import RingImportError
from importer import import_ring

logger = logging.getLogger(__name__)


def async_command(f):
    """Run an async click command on a fresh event loop."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
def cli(verbose: bool) -> None:
    """Ring Designer backend."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def serve() -> None:
    """Run the HTTP API."""
    settings = get_settings()
    logger.info(f"💍 Ring Designer API running on port {settings.port}")
    logger.info(f"   Allowed origin: {settings.allowed_origin}")
    uvicorn.run("server:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


@cli.command("import")
@click.argument("url")
@async_command
async def import_command(url: str) -> None:
    """Import a ring from a retailer product page and print the result."""
    try:
        result = await import_ring(url)
    except RingImportError as e:
        click.echo(orjson.dumps(e.to_dict(), option=orjson.OPT_INDENT_2).decode(), err=True)
        sys.exit(1)

    payload = result.model_dump(by_alias=True)
    click.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


if __name__ == "__main__":
    cli()
