"""
Configuration classes for sqshell. Separated, to reduce code clutter in
the main module.
"""

from dataclasses import dataclass, field
import os
from pathlib import Path
from string import Template
import tomllib
from typing import Any, Self

from sqshell.analyzers import AnalyzerName
from sqshell.cursor import WHITESPACE
from sqshell.expander import to_field_separator
from sqshell.shell import DEFAULT_SHELL_COMMAND, parse_shell_command

DEFAULT_TERMINATOR = ";"


class ConfigurationError(Exception):
    """
    Thrown to indicate a configuration error.
    """


@dataclass(frozen=True)
class ShellConfig:
    """
    The settings from the configuration file, or the defaults for anything
    the file doesn't set.
    """

    terminator: str = DEFAULT_TERMINATOR
    analyzer: str = AnalyzerName.ANSI.value
    field_separator: str = WHITESPACE
    shell_command: tuple[str, ...] = DEFAULT_SHELL_COMMAND
    expand_backticks: bool = True
    history_file: Path | None = None
    variables: dict[str, str] = field(default_factory=dict)
    path: Path | None = None


class EnvDict(dict):
    """
    For environment substitution, we want a reference to a non-existent
    variable to substitute "", rather than throw an error (as with
    Template.substitute()) or leave the reference intact (as with
    Template.safe_substitute()). To do that, we simply use a custom
    dictionary class.
    """

    def __init__(self: Self, *args, **kw) -> None:
        """Initialize the dictionary"""
        self.update(*args, **kw)

    def __getitem__(self: Self, key: Any) -> Any:
        """Get an item from the dictionary"""
        return super().get(key, "")


def _get_str(section: dict[str, Any], key: str, config: Path) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f'"{config}": "{key}" must be a string.')
    return value


def load_configuration(config: Path) -> ShellConfig:
    """
    Reads the configuration file, which must exist. The file is TOML, with
    an optional [shell] section for settings and an optional [variables]
    section whose entries become session variables. Environment variable
    references (e.g., "${HOME}") are substituted in string settings. Raises
    ConfigurationError on error.

    :param config: Path to the configuration file
    """
    assert config.exists()

    try:
        with open(config, mode="rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        # pylint: disable=raise-missing-from
        raise ConfigurationError(f'Unable to read "{config}": {e}')

    env = EnvDict(**os.environ)

    def subst(s: str, key: str) -> str:
        # A "$" that doesn't start a reference must be written as "$$".
        try:
            return Template(s).substitute(env)
        except ValueError as e:
            # pylint: disable=raise-missing-from
            raise ConfigurationError(f'"{config}": Bad value for "{key}": {e}')

    shell = data.get("shell", {})
    if not isinstance(shell, dict):
        raise ConfigurationError(f'"{config}": "shell" must be a section.')

    settings: dict[str, Any] = {"path": config}

    if (terminator := _get_str(shell, "terminator", config)) is not None:
        if len(terminator) != 1:
            raise ConfigurationError(
                f'"{config}": The terminator must be a single character, '
                f'not "{terminator}".'
            )
        settings["terminator"] = terminator

    if (analyzer := _get_str(shell, "analyzer", config)) is not None:
        names = [n.value for n in AnalyzerName]
        if analyzer.lower() not in names:
            raise ConfigurationError(
                f'"{config}": Unknown analyzer "{analyzer}". '
                f"Valid analyzers: {', '.join(names)}"
            )
        settings["analyzer"] = analyzer.lower()

    if (ifs := _get_str(shell, "ifs", config)) is not None:
        settings["field_separator"] = to_field_separator(ifs)

    if (shell_command := _get_str(shell, "shell", config)) is not None:
        settings["shell_command"] = parse_shell_command(
            subst(shell_command, "shell")
        )

    if (history := _get_str(shell, "history", config)) is not None:
        settings["history_file"] = Path(subst(history, "history")).expanduser()

    match shell.get("expand_backticks"):
        case None:
            pass
        case bool(flag):
            settings["expand_backticks"] = flag
        case _:
            raise ConfigurationError(
                f'"{config}": "expand_backticks" must be true or false.'
            )

    variables = data.get("variables", {})
    if not isinstance(variables, dict):
        raise ConfigurationError(f'"{config}": "variables" must be a section.')
    settings["variables"] = {
        str(k): subst(v, str(k)) if isinstance(v, str) else str(v)
        for k, v in variables.items()
    }

    return ShellConfig(**settings)
