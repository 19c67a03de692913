"""
Ad-hoc resolution against a single remote, without a configuration file.

Useful for trying out watch patterns before adding them to the config.
"""

import json

import click

from ..cli_utils import standard_command


@click.command('ls-remote')
@click.argument('uri')
@click.option('--exact', '-e', 'exact', multiple=True,
              help='Exact reference name to watch (repeatable)')
@click.option('--regex', '-r', 'patterns', multiple=True,
              help='Regular expression of references to watch (repeatable)')
@click.option('--target', '-t', default=None,
              help='Target reference (default: remote HEAD)')
@click.option('--pretty', '-p', is_flag=True,
              help='Human-readable table output (default: JSON)')
@standard_command
def ls_remote_handler(uri, exact, patterns, target, pretty):
    """
    List a remote's references and resolve watch rules against them.

    URI is anything git ls-remote accepts, or github:owner/name to use the
    GitHub API.

    \b
    Examples:
      refwatch ls-remote https://github.com/octo/hello.git \\
          -e refs/heads/master -r '^refs/pull/\\d+/head$'
      refwatch ls-remote github:octo/hello --target refs/heads/develop
    """
    from ..infra import GitHubRemote, GitRemote, parse_github_uri
    from ..render import render_snapshot_table
    from ..services import take_snapshot
    from ..target import resolve_target_ref
    from ..watch import WatchMatcher

    matcher = WatchMatcher.compile(exact, patterns)

    github = parse_github_uri(uri)
    remote = GitHubRemote(*github) if github else GitRemote(uri)

    snapshot = take_snapshot(remote)
    watched = matcher.resolve(snapshot)
    resolved_target = resolve_target_ref(target, remote)

    if pretty:
        render_snapshot_table(snapshot, watched, resolved_target)
    else:
        print(json.dumps({
            'uri': uri,
            'references': [reference.to_dict() for reference in snapshot],
            'watched': sorted(watched),
            'target': resolved_target,
        }, ensure_ascii=False))
