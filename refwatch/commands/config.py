import copy
import json

import click

from ..cli_utils import standard_command

SECRET_KEYS = ('password', 'key_passphrase', 'token')
MASK = '********'


def mask_secrets(config):
    """Copy of the configuration with credentials replaced by a mask."""
    masked = copy.deepcopy(config)

    def walk(node):
        if isinstance(node, dict):
            for key, value in node.items():
                if key in SECRET_KEYS and value:
                    node[key] = MASK
                else:
                    walk(value)

    walk(masked)
    return masked


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@standard_command
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Credentials are masked.
    """
    from ..config import get_config_path, load_config

    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = mask_secrets(load_config())
    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("generate")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Where to write (default: the config path); .json, .toml, .yaml")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@standard_command
def generate_config(output, force):
    """Write an example configuration file."""
    from pathlib import Path
    from ..config import generate_config_example, get_config_path, save_config

    config_path = Path(output) if output else get_config_path()
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path} (use --force to overwrite)", err=True)
        return 1

    save_config(generate_config_example(), config_path)
    click.echo(f"Example configuration written to {config_path}")
