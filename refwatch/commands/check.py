"""
Configuration check command for refwatch.

Compiles every repository's watch patterns without touching any remote,
so pattern mistakes are caught before the polling loop starts.
"""

import json

import click

from ..cli_utils import standard_command, select_repositories


@click.command('check')
@click.option('--pretty', '-p', is_flag=True,
              help='Human-readable output (default: JSONL)')
@standard_command
def check_handler(pretty):
    """
    Validate configuration and watch patterns.

    Exits with status 66 and names the offending pattern when one does
    not compile.
    """
    from ..services import ResolutionService

    repos = select_repositories()
    matchers = ResolutionService().compile_all(repos)

    for repo in repos:
        matcher = matchers[repo.name]
        spec = matcher.specification
        if pretty:
            target = repo.target_ref or "remote HEAD"
            click.echo(
                f"✓ {repo.name}: {len(spec.exact)} exact, "
                f"{len(spec.patterns)} patterns, target {target}"
            )
        else:
            print(json.dumps({
                'repository': repo.name,
                'valid': True,
                'exact': list(spec.exact),
                'patterns': list(spec.patterns),
                'target_ref': repo.target_ref,
            }, ensure_ascii=False))
