#!/usr/bin/env python3
"""
Configuration loading for refwatch.

Configuration is a plain dict: defaults, deep-merged with the config file
(JSON, TOML or YAML), then with REFWATCH_* environment overrides. Each
entry under ``repositories`` becomes a RepositoryConfiguration, from which
the narrow inputs of the resolution core are built:

    {
        "repositories": {
            "hello": {
                "uri": "https://github.com/octo/hello.git",
                "checkout_path": "~/mirrors/hello",
                "target_ref": "refs/heads/master",
                "watch": {
                    "exact": ["refs/heads/develop"],
                    "regex": ["^refs/pull/\\\\d+/head$"]
                }
            }
        }
    }
"""

import os
import json
import tomllib
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import toml
import yaml

from .errors import ConfigError
from .target import TargetReferenceConfiguration
from .watch import WatchSpecification

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)  # Default to stderr
    ]
)
logger = logging.getLogger("refwatch")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']

DEFAULT_REMOTE = "origin"
DEFAULT_NOTES_NAMESPACE = "refwatch"
GITHUB_SCHEME = "github:"


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. REFWATCH_CONFIG environment variable
    2. ~/.refwatch/config.{json,toml,yaml,yml}
    """
    if 'REFWATCH_CONFIG' in os.environ:
        path = Path(os.environ['REFWATCH_CONFIG']).expanduser()
        if path.exists():
            return path

    refwatch_dir = Path.home() / '.refwatch'
    for filename in CONFIG_FILENAMES:
        path = refwatch_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return refwatch_dir / 'config.json'


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "general": {
            "poll_interval_seconds": 300,
            "max_concurrent_repositories": 4,
            "git_timeout_seconds": 30,
        },
        "github": {
            "token": "",
            "max_retries": 3,
        },
        "logging": {
            "level": "INFO",
        },
        "repositories": {},
    }


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Read a configuration file in the format its suffix names.

    Raises:
        ConfigError: the file cannot be parsed or is not a mapping
    """
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif suffix in ('.yaml', '.yml'):
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f)
        else:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")
    return file_config


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration: defaults, then the config file, then the environment."""
    config_path = config_path or get_config_path()

    config = get_default_config()

    if config_path.exists():
        logger.debug(f"Loading configuration from {config_path}")
        config = merge_configs(config, read_config_file(config_path))

    return apply_env_overrides(config)


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> Path:
    """Save configuration to file, in the format its suffix names."""
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    with open(config_path, 'w') as f:
        if suffix == '.toml':
            toml.dump(config, f)
        elif suffix in ('.yaml', '.yml'):
            yaml.safe_dump(config, f, default_flow_style=False)
        else:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def generate_config_example() -> Dict[str, Any]:
    """An example configuration with one repository."""
    config = get_default_config()
    config["repositories"] = {
        "hello": {
            "uri": "https://github.com/octo/hello.git",
            "checkout_path": "~/.refwatch/mirrors/hello",
            "remote": DEFAULT_REMOTE,
            "notes_namespace": DEFAULT_NOTES_NAMESPACE,
            "fetch_refspecs": ["+refs/pull/*/head:refs/remotes/origin/pr/*"],
            "push_refspecs": [],
            "target_ref": "refs/heads/master",
            "watch": {
                "exact": ["refs/heads/master"],
                "regex": [r"^refs/pull/\d+/head$"],
            },
        }
    }
    return config


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _coerce_env_value(value: str) -> Any:
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern REFWATCH_SECTION_KEY, e.g.
    REFWATCH_GENERAL_POLL_INTERVAL_SECONDS=60. Keys containing underscores
    are matched greedily against the existing configuration; variables
    naming no existing key are ignored. Values replacing a string setting
    are kept as strings; others are coerced to bool or int.
    """
    env_prefix = "REFWATCH_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "REFWATCH_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')
        typed_value = _coerce_env_value(value)

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest key in current_level that prefixes the remaining parts
            best_match_len = 0
            matched_key = None
            for config_key in current_level.keys():
                config_key_parts = str(config_key).split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                if isinstance(current_level[matched_key], str):
                    # Strings such as tokens stay strings even when all digits
                    current_level[matched_key] = value
                else:
                    current_level[matched_key] = typed_value
                break

            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def parse_github_uri(uri: str) -> Optional[Tuple[str, str]]:
    """Split ``github:owner/name`` into (owner, name), or None for other URIs."""
    if not uri.startswith(GITHUB_SCHEME):
        return None
    path = uri[len(GITHUB_SCHEME):].strip('/')
    if path.endswith('.git'):
        path = path[:-len('.git')]
    parts = path.split('/')
    if len(parts) != 2 or not all(parts):
        raise ConfigError(f"GitHub URI must look like github:owner/name, got {uri}")
    return parts[0], parts[1]


def _str_list(value: Any, what: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ConfigError(f"{what} must be a list of strings")


def _optional_str(value: Any, what: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{what} must be a string")
    return value


@dataclass(frozen=True)
class RepositoryConfiguration:
    """
    Configuration for one watched repository.

    Only ``uri``, ``target_ref`` and the watch lists are used by refwatch
    itself. The remaining fields describe how the downstream merge engine
    should check out, authenticate, sign and record its work, and are
    carried through unchanged.
    """
    name: str
    uri: str
    checkout_path: Optional[str] = None
    remote: str = DEFAULT_REMOTE
    notes_namespace: str = DEFAULT_NOTES_NAMESPACE
    fetch_refspecs: Tuple[str, ...] = ()
    push_refspecs: Tuple[str, ...] = ()
    target_ref: Optional[str] = None
    watch_exact: Tuple[str, ...] = ()
    watch_regex: Tuple[str, ...] = ()
    signature_name: Optional[str] = None
    signature_email: Optional[str] = None
    username: Optional[str] = field(default=None, repr=False)
    password: Optional[str] = field(default=None, repr=False)
    key: Optional[str] = field(default=None, repr=False)
    key_passphrase: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'RepositoryConfiguration':
        """
        Build from one ``repositories`` entry.

        Raises:
            ConfigError: a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Repository {name} must be a mapping")

        uri = data.get('uri')
        if not isinstance(uri, str) or not uri:
            raise ConfigError(f"Repository {name} needs a 'uri'")
        # Raises ConfigError for a malformed github: URI
        parse_github_uri(uri)

        watch = data.get('watch') or {}
        if not isinstance(watch, dict):
            raise ConfigError(f"repositories.{name}.watch must be a mapping")

        prefix = f"repositories.{name}"
        return cls(
            name=name,
            uri=uri,
            checkout_path=_optional_str(data.get('checkout_path'), f"{prefix}.checkout_path"),
            remote=_optional_str(data.get('remote'), f"{prefix}.remote") or DEFAULT_REMOTE,
            notes_namespace=(
                _optional_str(data.get('notes_namespace'), f"{prefix}.notes_namespace")
                or DEFAULT_NOTES_NAMESPACE
            ),
            fetch_refspecs=_str_list(data.get('fetch_refspecs'), f"{prefix}.fetch_refspecs"),
            push_refspecs=_str_list(data.get('push_refspecs'), f"{prefix}.push_refspecs"),
            target_ref=_optional_str(data.get('target_ref'), f"{prefix}.target_ref"),
            watch_exact=_str_list(watch.get('exact'), f"{prefix}.watch.exact"),
            watch_regex=_str_list(watch.get('regex'), f"{prefix}.watch.regex"),
            signature_name=_optional_str(data.get('signature_name'), f"{prefix}.signature_name"),
            signature_email=_optional_str(data.get('signature_email'), f"{prefix}.signature_email"),
            username=_optional_str(data.get('username'), f"{prefix}.username"),
            password=_optional_str(data.get('password'), f"{prefix}.password"),
            key=_optional_str(data.get('key'), f"{prefix}.key"),
            key_passphrase=_optional_str(data.get('key_passphrase'), f"{prefix}.key_passphrase"),
        )

    def watch_specification(self) -> WatchSpecification:
        return WatchSpecification(self.watch_exact, self.watch_regex)

    def target_configuration(self) -> TargetReferenceConfiguration:
        return TargetReferenceConfiguration(self.target_ref)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, without credentials."""
        return {
            'name': self.name,
            'uri': self.uri,
            'checkout_path': self.checkout_path,
            'remote': self.remote,
            'notes_namespace': self.notes_namespace,
            'fetch_refspecs': list(self.fetch_refspecs),
            'push_refspecs': list(self.push_refspecs),
            'target_ref': self.target_ref,
            'watch': {'exact': list(self.watch_exact), 'regex': list(self.watch_regex)},
        }


def load_repositories(config: Dict[str, Any]) -> List[RepositoryConfiguration]:
    """Repository configurations in file order."""
    repositories = config.get('repositories') or {}
    if not isinstance(repositories, dict):
        raise ConfigError("'repositories' must be a mapping of name to repository")
    return [RepositoryConfiguration.from_dict(str(name), data) for name, data in repositories.items()]
