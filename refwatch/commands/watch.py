"""
Watch command for refwatch.

The polling loop: resolves every configured repository, sleeps for the
poll interval, and repeats until interrupted. Each cycle's results are
streamed as JSONL for the merge engine (or printed as a table).

Failures are per repository and per cycle: a repository whose target
cannot be resolved, or whose remote is unreachable, is reported and
retried on the next cycle. Only configuration errors stop the loop.
"""

import logging
import time

import click

from ..cli_utils import standard_command, select_repositories

logger = logging.getLogger(__name__)


@click.command('watch')
@click.argument('names', nargs=-1)
@click.option('--interval', '-i', type=int, default=None,
              help='Seconds between cycles (default: general.poll_interval_seconds)')
@click.option('--parallel', '-j', type=int, default=None,
              help='Repositories resolved concurrently (default: from config)')
@click.option('--once', is_flag=True,
              help='Run a single cycle and exit')
@click.option('--pretty', '-p', is_flag=True,
              help='Human-readable table output (default: JSONL)')
@standard_command
def watch_handler(names, interval, parallel, once, pretty):
    """
    Continuously resolve watched and target references.

    \b
    Examples:
      # Poll every configured repository every 5 minutes
      refwatch watch

      # Poll one repository every minute
      refwatch watch hello --interval 60

    Press Ctrl+C to stop.
    """
    from ..config import load_config
    from ..infra import remote_factory_from_config
    from ..services import ResolutionService
    from .resolve import emit_results

    config = load_config()
    repos = select_repositories(names, config)
    general = config.get('general', {})
    if interval is None:
        interval = general.get('poll_interval_seconds', 300)
    if parallel is None:
        parallel = general.get('max_concurrent_repositories', 1)
    if interval <= 0:
        raise click.BadParameter("interval must be positive", param_hint='--interval')

    if pretty:
        click.echo(f"Watching {len(repos)} repositories")
        click.echo(f"Interval: {interval}s")
        click.echo("Press Ctrl+C to stop\n")

    service = ResolutionService(remote_factory_from_config(config))
    cycle = 0
    while True:
        cycle += 1
        logger.debug(f"Starting cycle {cycle}")
        results = list(service.run_cycle(repos, parallel=parallel))
        emit_results(results, pretty, title=f"Cycle {cycle}")

        if once:
            return 0

        try:
            time.sleep(interval)
        except KeyboardInterrupt:
            if pretty:
                click.echo("\nStopped watching")
            raise
