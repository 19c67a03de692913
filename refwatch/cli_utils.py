"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
from functools import wraps
from typing import List, Optional, Sequence

import click

from .config import RepositoryConfiguration, load_config, load_repositories
from .errors import NoReposFoundError, RefwatchError
from .exit_codes import SUCCESS, INTERRUPTED, get_exit_code_for_exception

logger = logging.getLogger(__name__)


def report_error(error: BaseException, pretty: bool = False) -> None:
    """Write an error to stderr, as JSON unless ``pretty``."""
    if pretty:
        click.echo(f"Error: {error}", err=True)
        return

    error_obj = {
        "error": str(error),
        "type": type(error).__name__,
        "exit_code": get_exit_code_for_exception(error),
    }
    if hasattr(error, 'succeeded'):
        error_obj['succeeded'] = error.succeeded
        error_obj['failed'] = error.failed
    print(json.dumps(error_obj, ensure_ascii=False), file=sys.stderr, flush=True)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - The command's return value is the exit code (None means success)
    - refwatch errors are reported on stderr and exit with their own code
    - Ctrl+C exits with INTERRUPTED
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        pretty = kwargs.get('pretty', False)
        try:
            code = func(*args, **kwargs)
        except KeyboardInterrupt:
            if pretty:
                click.echo("\nInterrupted", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except RefwatchError as e:
            report_error(e, pretty)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}", exc_info=True)
            report_error(e, pretty)
            sys.exit(get_exit_code_for_exception(e))
        sys.exit(code or SUCCESS)

    return wrapper


def select_repositories(names: Sequence[str] = (), config: Optional[dict] = None) -> List[RepositoryConfiguration]:
    """
    Configured repositories, optionally restricted to ``names``.

    Raises:
        NoReposFoundError: nothing configured, or no configured repository
            has one of the given names
        ConfigError: the configuration is invalid
    """
    if config is None:
        config = load_config()

    repos = load_repositories(config)
    if not repos:
        raise NoReposFoundError()

    if names:
        wanted = set(names)
        unknown = wanted - {repo.name for repo in repos}
        for name in sorted(unknown):
            logger.warning(f"No repository named {name} in configuration")
        repos = [repo for repo in repos if repo.name in wanted]
        if not repos:
            raise NoReposFoundError(f"No configured repository named {', '.join(sorted(names))}")

    return repos
