"""Configuration file loading and run-spec resolution.

The configuration file lives at ``$XDG_CONFIG_HOME/upkeep.toml`` by default.
TOML is preferred; ``.yaml``/``.yml`` files are read with PyYAML. Command-line
arguments and the file are merged once into a frozen ``RunSpec`` that the
runner and the git synchronizer only read.
"""

from __future__ import annotations

import logging
import os
import shlex
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from upkeep.errors import ConfigError
from upkeep.executor import RunType
from upkeep.steps import RESERVED_ACTION_NAMES, Step, parse_steps

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "upkeep.toml"

EXAMPLE_CONFIG = """\
# Disable specific steps - same options as the command line flag
#disable = ["system", "emacs"]

# Run specific steps - same options as the command line flag
#only = ["system", "emacs"]

# Do not ask to retry failed steps (default: false)
#no_retry = true

# Prompt for a key before exiting
#keep_at_end = true

[git]
#max_concurrency = 5
# Additional git repositories to pull
#repos = [
#    "~/src/*/",
#    "~/.config/something"
#]

# Don't pull the predefined git repos
#pull_predefined = false

# Arguments to pass git when pulling repositories
#arguments = "--rebase --autostash"

[pre_commands]
# Commands to run before anything
#"Emacs Snapshot" = "rm -rf ~/.emacs.d/elpa.bak && cp -rl ~/.emacs.d/elpa ~/.emacs.d/elpa.bak"

[post_commands]
# Commands to run after anything
#"Emacs Snapshot" = "rm -rf ~/.emacs.d/elpa.bak && cp -rl ~/.emacs.d/elpa ~/.emacs.d/elpa.bak"

[commands]
# Custom commands
#"Python Environment" = "~/dev/.env/bin/pip install -i https://pypi.python.org/simple -U --upgrade-strategy eager jupyter"
"""

TOP_LEVEL_KEYS = frozenset(
    {
        "commands",
        "disable",
        "git",
        "keep_at_end",
        "no_retry",
        "only",
        "post_commands",
        "pre_commands",
    }
)
GIT_KEYS = frozenset({"arguments", "max_concurrency", "pull_predefined", "repos"})


@dataclass(frozen=True)
class GitConfig:
    """The ``[git]`` table."""

    max_concurrency: int | None = None
    arguments: str | None = None
    repos: tuple[str, ...] = ()
    pull_predefined: bool | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, source: str) -> GitConfig:
        unknown = sorted(set(data) - GIT_KEYS)
        if unknown:
            raise ConfigError(f"{source}: unknown keys in [git]: {', '.join(unknown)}")

        max_concurrency = data.get("max_concurrency")
        if max_concurrency is not None and (
            isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1
        ):
            raise ConfigError(f"{source}: git.max_concurrency must be a positive integer, got {max_concurrency!r}")

        arguments = data.get("arguments")
        if arguments is not None and not isinstance(arguments, str):
            raise ConfigError(f"{source}: git.arguments must be a string")
        if arguments is not None:
            try:
                shlex.split(arguments)
            except ValueError as exc:
                raise ConfigError(f"{source}: git.arguments cannot be parsed: {exc}") from exc

        return cls(
            max_concurrency=max_concurrency,
            arguments=arguments,
            repos=tuple(os.path.expanduser(p) for p in _string_list(data.get("repos"), f"{source}: git.repos")),
            pull_predefined=_optional_bool(data.get("pull_predefined"), f"{source}: git.pull_predefined"),
        )


@dataclass(frozen=True)
class ConfigFile:
    """Parsed configuration file. Every field is optional."""

    pre_commands: dict[str, str] = field(default_factory=dict)
    post_commands: dict[str, str] = field(default_factory=dict)
    commands: dict[str, str] = field(default_factory=dict)
    disable: tuple[Step, ...] = ()
    only: tuple[Step, ...] = ()
    no_retry: bool | None = None
    keep_at_end: bool | None = None
    git: GitConfig = field(default_factory=GitConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, source: str = "config") -> ConfigFile:
        """Validate a parsed mapping into a ConfigFile."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"{source}: expected a mapping at top level")

        unknown = sorted(set(data) - TOP_LEVEL_KEYS)
        if unknown:
            raise ConfigError(f"{source}: unknown keys: {', '.join(unknown)}")

        git_raw = data.get("git") or {}
        if not isinstance(git_raw, Mapping):
            raise ConfigError(f"{source}: [git] must be a table")

        return cls(
            pre_commands=_commands(data.get("pre_commands"), f"{source}: pre_commands"),
            post_commands=_commands(data.get("post_commands"), f"{source}: post_commands"),
            commands=_custom_commands(data.get("commands"), f"{source}: commands"),
            disable=tuple(parse_steps(_string_list(data.get("disable"), f"{source}: disable"), source=source)),
            only=tuple(parse_steps(_string_list(data.get("only"), f"{source}: only"), source=source)),
            no_retry=_optional_bool(data.get("no_retry"), f"{source}: no_retry"),
            keep_at_end=_optional_bool(data.get("keep_at_end"), f"{source}: keep_at_end"),
            git=GitConfig.from_dict(git_raw, source=source),
        )


def _commands(value: Any, where: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where} must be a table of name = command")
    commands: dict[str, str] = {}
    for name, command in value.items():
        if not isinstance(command, str):
            raise ConfigError(f"{where}.{name} must be a string")
        commands[str(name)] = command
    return commands


def _custom_commands(value: Any, where: str) -> dict[str, str]:
    commands = _commands(value, where)
    clashing = sorted(RESERVED_ACTION_NAMES.intersection(commands))
    if clashing:
        raise ConfigError(f"{where}: {', '.join(clashing)} is the name of a built-in step")
    return commands


def _string_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{where} must be a list of strings")
    return list(value)


def _optional_bool(value: Any, where: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise ConfigError(f"{where} must be true or false")


def config_directory() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def default_config_path() -> Path:
    return config_directory() / CONFIG_FILENAME


def ensure_config(path: Path) -> Path:
    """Write the example configuration to ``path`` if nothing is there yet."""
    if not path.exists():
        logger.debug("No configuration exists, writing the example to %s", path)
        path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    else:
        logger.debug("Configuration at %s", path)
    return path


def read_config_file(path: Path) -> ConfigFile:
    """Parse ``path`` (TOML, or YAML by suffix) into a ConfigFile.

    Raises:
        ConfigError: the file cannot be read, parsed or validated.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc

    if path.suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML config at {path}: {exc}") from exc
    else:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Malformed TOML config at {path}: {exc}") from exc

    config = ConfigFile.from_dict(data, source=str(path))
    logger.debug("Loaded configuration: %s", config)
    return config


def load_config_file(path: Path | None = None) -> ConfigFile:
    """Load the configuration, falling back to defaults on any error.

    Errors are logged rather than raised so that a broken file still lets the
    run attempt the remaining work.
    """
    if path is None:
        directory = config_directory()
        if not directory.is_dir():
            logger.debug("Configuration directory %s does not exist", directory)
            return ConfigFile()
        try:
            path = ensure_config(directory / CONFIG_FILENAME)
        except OSError as exc:
            logger.debug("Unable to write the example configuration: %s. Using blank config.", exc)
            return ConfigFile()

    try:
        return read_config_file(path)
    except ConfigError as exc:
        logger.error("failed to load configuration: %s", exc)
        return ConfigFile()


@dataclass(frozen=True)
class CommandLineArgs:
    """Options taken from the command line."""

    dry_run: bool = False
    no_retry: bool = False
    disable: tuple[Step, ...] = ()
    only: tuple[Step, ...] = ()
    keep_at_end: bool = False
    verbose: bool = False
    show_skipped: bool = False
    disable_predefined_git_repos: bool = False
    config: Path | None = None


def allowed_steps(opt: CommandLineArgs, config_file: ConfigFile) -> frozenset[Step]:
    """Combine ``only`` and ``disable`` from both sources.

    A step named in ``--only`` on the command line survives any ``disable``.
    """
    enabled: list[Step] = [*opt.only, *config_file.only]
    if not enabled:
        enabled = list(Step)
    disabled = {*opt.disable, *config_file.disable}
    return frozenset(step for step in enabled if step not in disabled or step in opt.only)


@dataclass(frozen=True)
class RunSpec:
    """Resolved, read-only configuration for one run."""

    run_type: RunType = RunType.WET
    allowed_steps: frozenset[Step] = frozenset(Step)
    no_retry: bool = False
    git_concurrency_limit: int | None = None
    git_arguments: str | None = None
    git_repos: tuple[str, ...] = ()
    pull_predefined: bool = True
    pre_commands: dict[str, str] = field(default_factory=dict)
    commands: dict[str, str] = field(default_factory=dict)
    post_commands: dict[str, str] = field(default_factory=dict)
    keep_at_end: bool = False
    show_skipped: bool = False
    verbose: bool = False

    @classmethod
    def resolve(cls, opt: CommandLineArgs, config_file: ConfigFile) -> RunSpec:
        git = config_file.git
        return cls(
            run_type=RunType.from_dry_run(opt.dry_run),
            allowed_steps=allowed_steps(opt, config_file),
            no_retry=opt.no_retry or bool(config_file.no_retry),
            git_concurrency_limit=git.max_concurrency,
            git_arguments=git.arguments,
            git_repos=git.repos,
            pull_predefined=not opt.disable_predefined_git_repos
            and (git.pull_predefined if git.pull_predefined is not None else True),
            pre_commands=dict(config_file.pre_commands),
            commands=dict(config_file.commands),
            post_commands=dict(config_file.post_commands),
            keep_at_end=opt.keep_at_end or bool(config_file.keep_at_end),
            show_skipped=opt.show_skipped,
            verbose=opt.verbose,
        )

    def should_run(self, step: Step) -> bool:
        return step in self.allowed_steps
