"""
Resolve command for refwatch.

Runs a single polling cycle over the configured repositories and reports,
per repository, which watched references the remote currently has and
which reference merges should target.
"""

import json
import logging

import click

from ..cli_utils import standard_command, select_repositories
from ..errors import PartialSuccessError, ResolveError

logger = logging.getLogger(__name__)


def emit_results(results, pretty: bool, title: str = "Watched References") -> None:
    """Print cycle results as JSONL, or as a table with ``pretty``."""
    from ..render import render_cycle_table

    if pretty:
        render_cycle_table(results, title=title)
    else:
        for result in results:
            print(json.dumps(result.to_dict(), ensure_ascii=False), flush=True)


@click.command('resolve')
@click.argument('names', nargs=-1)
@click.option('--parallel', '-j', type=int, default=None,
              help='Repositories resolved concurrently (default: from config)')
@click.option('--pretty', '-p', is_flag=True,
              help='Human-readable table output (default: JSONL)')
@standard_command
def resolve_handler(names, parallel, pretty):
    """
    Resolve watched and target references once.

    Resolves every configured repository, or only NAMES when given.

    \b
    Output (JSONL, one line per repository):
      repository   Repository name from configuration
      status       ok, skipped (target not resolvable) or failed (remote error)
      watched      Watched references the remote currently advertises
      target       Reference merges are created against

    Exits with status 71 when only some repositories resolved and 72 when
    none did.

    \b
    Examples:
      refwatch resolve
      refwatch resolve hello --pretty
    """
    from ..config import load_config
    from ..render import print_poll_summary
    from ..infra import remote_factory_from_config
    from ..services import ResolutionService

    config = load_config()
    repos = select_repositories(names, config)
    if parallel is None:
        parallel = config.get('general', {}).get('max_concurrent_repositories', 1)

    service = ResolutionService(remote_factory_from_config(config))
    results = list(service.run_cycle(repos, parallel=parallel))
    emit_results(results, pretty)

    summary = service.last_summary
    if pretty:
        print_poll_summary(summary)

    if summary.ok == 0:
        raise ResolveError(f"None of the {summary.total} repositories resolved")
    if not summary.success:
        raise PartialSuccessError(
            f"{summary.total - summary.ok} of {summary.total} repositories did not resolve",
            succeeded=summary.ok,
            failed=summary.total - summary.ok,
        )
