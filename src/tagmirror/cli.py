"""tagmirror CLI - Command line interface for tagmirror."""
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from tagmirror.config import MirrorSettings
from tagmirror.core.errors import PathNotFoundError, ResolutionError
from tagmirror.repository import RepositoryReader

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
)
logger = logging.getLogger("tagmirror")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_TAG_NOT_FOUND = 3
EXIT_PATH_NOT_FOUND = 4


def _reader(ctx: click.Context) -> RepositoryReader:
    options = ctx.obj
    try:
        settings = MirrorSettings.from_env(
            remote=options["remote"],
            cache_dir=options["cache_dir"],
            ttl_seconds=options["ttl"],
        )
    except ValidationError as e:
        raise click.UsageError(f"Invalid configuration: {e}", ctx=ctx)
    return settings.build_reader()


@click.group()
@click.option(
    "--remote",
    default=None,
    help="Repository URL or path to mirror (env: TAGMIRROR_REMOTE)",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Mirror directory (env: TAGMIRROR_CACHE_DIR)",
)
@click.option(
    "--ttl",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds before the mirror is refreshed; 0 always refreshes (env: TAGMIRROR_CACHE_TTL)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every git command")
@click.pass_context
def main(
    ctx: click.Context,
    remote: Optional[str],
    cache_dir: Optional[Path],
    ttl: Optional[float],
    verbose: bool,
):
    """tagmirror - read files at historical tags from a cached git mirror."""
    if verbose:
        logger.setLevel(logging.DEBUG)
    ctx.obj = {"remote": remote, "cache_dir": cache_dir, "ttl": ttl}


@main.command()
@click.option("--force", is_flag=True, help="Fetch even if the mirror is fresh")
@click.pass_context
def update(ctx: click.Context, force: bool):
    """Clone or refresh the mirror if it is older than the TTL.

    Exit codes:
        0: Success
        1: Clone or fetch failed
    """
    try:
        refreshed = _reader(ctx).update_cache(force=force)
    except click.UsageError:
        raise
    except Exception as e:
        logger.error(f"Update failed: {str(e)}")
        sys.exit(EXIT_FAILURE)

    if refreshed:
        click.echo("[OK] Mirror refreshed")
    else:
        click.echo("[OK] Mirror is fresh")
    sys.exit(EXIT_OK)


@main.command()
@click.pass_context
def tags(ctx: click.Context):
    """List the tags of the mirrored repository."""
    try:
        names = _reader(ctx).tags()
    except click.UsageError:
        raise
    except Exception as e:
        logger.error(f"Listing tags failed: {str(e)}")
        sys.exit(EXIT_FAILURE)

    for name in sorted(names):
        click.echo(name)
    sys.exit(EXIT_OK)


@main.command()
@click.argument("path")
@click.option("--tag", required=True, help="Tag to read the file at")
@click.pass_context
def show(ctx: click.Context, path: str, tag: str):
    """Print PATH as it was at --tag.

    Examples:
        tagmirror --remote ./repo --cache-dir /tmp/mirror show Modulefile --tag 1.0.0

    Exit codes:
        0: Success
        1: Generic runtime failure
        3: Tag not found
        4: Path not found at tag
    """
    try:
        content = _reader(ctx).read_bytes(path, tag)
    except click.UsageError:
        raise
    except ResolutionError as e:
        logger.error(f"Invalid tag: {str(e)}")
        sys.exit(EXIT_TAG_NOT_FOUND)
    except PathNotFoundError as e:
        logger.error(f"Missing file: {str(e)}")
        sys.exit(EXIT_PATH_NOT_FOUND)
    except Exception as e:
        logger.error(f"Show failed: {str(e)}")
        sys.exit(EXIT_FAILURE)

    click.echo(content, nl=False)
    sys.exit(EXIT_OK)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Print the mirror's freshness as JSON, without refreshing it."""
    mirror_status = _reader(ctx).cache.status()
    click.echo(mirror_status.model_dump_json(indent=2))
    sys.exit(EXIT_OK)


@main.command()
@click.pass_context
def clear(ctx: click.Context):
    """Delete the mirror; the next read clones it again."""
    try:
        _reader(ctx).clear_cache()
    except click.UsageError:
        raise
    except Exception as e:
        logger.error(f"Clear failed: {str(e)}")
        sys.exit(EXIT_FAILURE)

    click.echo("[OK] Mirror cleared")
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
