"""
Options loading for ghcl.

Run options come from three places, highest priority first: command line
flags, the YAML config file, interactive prompts (credentials only) and
built-in defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

import typer
import yaml

from ..models import (
    Authentication,
    CloneOptions,
    GitProtocol,
    RepositorySpec,
    Service,
)
from ..models.config import DEFAULT_FORK_TIMEOUT, DEFAULT_REMOTE_NAME
from .error_handler import ConfigTrackNoSetup, ConfigurationError
from .logger import logger


APP_NAME = "ghcl"
CONFIG_FILE_NAME = "config.yml"

T = TypeVar("T")

# prompt(text, secure) -> answer
Prompt = Callable[[str, bool], str]


def default_config_path() -> Path:
    return Path(typer.get_app_dir(APP_NAME)) / CONFIG_FILE_NAME


def first_set(*values: Optional[T]) -> Optional[T]:
    for value in values:
        if value is not None:
            return value
    return None


@dataclass
class PartialAuthentication:
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class FileConfig:
    """Settings read from the YAML config file; ``None`` means unset."""

    organization: Optional[str] = None
    track_upstream: Optional[bool] = None
    setup_upstream: Optional[bool] = None
    remote_name: Optional[str] = None
    origin_protocol: Optional[GitProtocol] = None
    upstream_protocol: Optional[GitProtocol] = None
    default_service: Optional[Service] = None
    quiet: Optional[bool] = None
    fork_timeout: Optional[int] = None
    authentication: Dict[Service, PartialAuthentication] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "FileConfig":
        """
        Build a config from a decoded YAML mapping.

        Raises:
            ConfigurationError: If a known key holds a value of the wrong type
        """
        known = {
            "organization", "track_upstream", "setup_upstream", "remote_name",
            "origin_protocol", "upstream_protocol", "default_service", "quiet",
            "fork_timeout", "authentication",
        }
        for key in set(data) - known:
            logger.debug(f"Ignoring unknown config key: {key}")

        try:
            return cls(
                organization=_typed(data, "organization", str),
                track_upstream=_typed(data, "track_upstream", bool),
                setup_upstream=_typed(data, "setup_upstream", bool),
                remote_name=_typed(data, "remote_name", str),
                origin_protocol=_parsed(data, "origin_protocol", GitProtocol.parse),
                upstream_protocol=_parsed(data, "upstream_protocol", GitProtocol.parse),
                default_service=_parsed(data, "default_service", Service.parse),
                quiet=_typed(data, "quiet", bool),
                fork_timeout=_fork_timeout(data.get("fork_timeout")),
                authentication=_authentication(data.get("authentication")),
            )
        except ValueError as e:
            raise ConfigurationError(f"invalid config: {e}", e) from e


def _typed(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise ValueError(f"{key} must be a {kind.__name__}, got {value!r}")
    return value


def _parsed(data: Dict[str, Any], key: str, parse: Callable[[str], T]) -> Optional[T]:
    value = _typed(data, key, str)
    return parse(value) if value is not None else None


def _fork_timeout(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"fork_timeout must be a non-negative integer, got {value!r}")
    return value


def _authentication(value: Any) -> Dict[Service, PartialAuthentication]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("authentication must be a mapping of service to credentials")

    result = {}
    for service_name, entry in value.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ValueError(f"authentication.{service_name} must be a mapping")
        result[Service.parse(str(service_name))] = PartialAuthentication(
            username=_typed(entry, "username", str),
            password=_typed(entry, "password", str),
        )
    return result


def load_file_config(path: Optional[Path] = None) -> FileConfig:
    """
    Load the YAML config file; a missing file yields an empty config.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    path = path or default_config_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug(f"No config file at {path}, using defaults")
        return FileConfig()
    except OSError as e:
        raise ConfigurationError(f"failed to read config file {path}", e) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse config file {path}", e) from e

    logger.debug(f"Loaded config from {path}")
    if data is None:
        return FileConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    return FileConfig.from_mapping(data)


@dataclass
class CliFlags:
    """Raw command line values; ``None`` means the flag was not given."""

    repository: str
    clone_path: Optional[Path] = None
    config_path: Optional[Path] = None
    organization: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    fork_timeout: Optional[int] = None
    track_upstream: Optional[bool] = None
    setup_upstream: bool = False
    no_upstream: bool = False
    remote_name: Optional[str] = None
    origin_protocol: Optional[GitProtocol] = None
    upstream_protocol: Optional[GitProtocol] = None
    default_service: Optional[Service] = None
    quiet: Optional[bool] = None


def _check_flag_conflicts(flags: CliFlags) -> None:
    if flags.no_upstream and (
        flags.track_upstream or flags.setup_upstream or flags.remote_name is not None
    ):
        raise ConfigurationError(
            "--no-upstream cannot be combined with --track-upstream, "
            "--setup-upstream or --remote-name"
        )


def resolve_options(flags: CliFlags, config: FileConfig, prompt: Prompt) -> CloneOptions:
    """
    Merge flags, file config and defaults into ``CloneOptions``.

    Credentials missing from both flags and config are requested through
    ``prompt``. All validation happens here, before any network activity.

    Raises:
        ConfigTrackNoSetup: If the config asks for tracking without setup
        ConfigurationError: On conflicting flags
        FailedToParseRepository: If the repository argument is invalid
    """
    _check_flag_conflicts(flags)

    if flags.track_upstream is True:
        cli_track = True
    elif flags.track_upstream is False or flags.no_upstream:
        cli_track = False
    else:
        cli_track = None

    if flags.setup_upstream or flags.track_upstream or flags.remote_name is not None:
        cli_setup = True
    elif flags.no_upstream:
        cli_setup = False
    else:
        cli_setup = None

    if cli_track is not False and config.track_upstream is True and config.setup_upstream is False:
        raise ConfigTrackNoSetup()

    track_upstream = first_set(cli_track, config.track_upstream, config.setup_upstream, True)
    setup_upstream = track_upstream or first_set(cli_setup, config.setup_upstream, True)

    service = first_set(flags.default_service, config.default_service, Service.GITHUB)
    repository = RepositorySpec.from_arg_string(flags.repository, service)

    stored = config.authentication.get(repository.service, PartialAuthentication())
    username = first_set(flags.username, stored.username)
    if username is None:
        username = prompt("Username", False)
    password = first_set(flags.password, stored.password)
    if password is None:
        password = prompt("Password", True)

    try:
        return CloneOptions(
            repository=repository,
            authentication=Authentication(username=username, password=password),
            clone_path=first_set(flags.clone_path, Path(repository.name)),
            organization=first_set(flags.organization, config.organization),
            track_upstream=track_upstream,
            setup_upstream=setup_upstream,
            remote_name=first_set(flags.remote_name, config.remote_name, DEFAULT_REMOTE_NAME),
            origin_protocol=first_set(flags.origin_protocol, config.origin_protocol, GitProtocol.SSH),
            upstream_protocol=first_set(flags.upstream_protocol, config.upstream_protocol, GitProtocol.HTTPS),
            quiet=first_set(flags.quiet, config.quiet, False),
            fork_timeout=first_set(flags.fork_timeout, config.fork_timeout, DEFAULT_FORK_TIMEOUT),
        )
    except ValueError as e:
        raise ConfigurationError(f"invalid options: {e}", e) from e


def load_options(flags: CliFlags, prompt: Prompt) -> CloneOptions:
    """Load the config file named by ``flags`` and resolve the run options."""

    return resolve_options(flags, load_file_config(flags.config_path), prompt)
