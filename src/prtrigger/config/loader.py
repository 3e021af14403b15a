"""Configuration file loading.

Loading happens in four steps: find the file, parse the YAML, expand
``${VAR}`` references from the environment, validate with the schema.
Each step raises a ``ConfigError`` subclass carrying the file path so the
CLI can report it.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from prtrigger.config.schema import Config
from prtrigger.paths import get_default_config_path

CONFIG_ENV_VAR = "PRTRIGGER_CONFIG"
CWD_CONFIG_NAME = "prtrigger.yaml"

# ${NAME} or ${NAME:-fallback}
ENV_VAR_PATTERN = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<default>[^}]*))?\}")


class ConfigError(Exception):
    """Base class for configuration problems."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error description
            path: Config file the error refers to, when known
        """
        self.path = path
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """No configuration file exists at any searched location."""


class ConfigValidationError(ConfigError):
    """The file parsed but does not satisfy the schema."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.validation_errors = validation_errors or []
        super().__init__(message, path)


class EnvironmentVariableError(ConfigError):
    """A ``${VAR}`` reference without fallback names an unset variable."""

    def __init__(self, var_name: str, path: Path | None = None) -> None:
        self.var_name = var_name
        super().__init__(
            f"Environment variable '{var_name}' is not set "
            f"(use ${{{var_name}:-value}} to give it a fallback)",
            path,
        )


def expand_env_vars(value: Any, *, strict: bool = True) -> Any:
    """Replace ``${VAR}`` and ``${VAR:-fallback}`` references.

    Strings nested in lists and mappings are expanded too; mapping keys
    and non-string scalars are returned as they are.

    Args:
        value: Parsed YAML value.
        strict: Raise for an unset variable without fallback. When False
            the reference is kept verbatim.

    Returns:
        The expanded value.

    Raises:
        EnvironmentVariableError: If strict and a variable is unset.
    """
    if isinstance(value, dict):
        return {key: expand_env_vars(item, strict=strict) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item, strict=strict) for item in value]
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match[str]) -> str:
        name = match.group("name")
        resolved = os.environ.get(name)
        if resolved is not None:
            return resolved
        if match.group("default") is not None:
            return match.group("default")
        if strict:
            raise EnvironmentVariableError(name)
        return match.group(0)

    return ENV_VAR_PATTERN.sub(substitute, value)


def config_search_paths() -> list[Path]:
    """List the implicit config locations, highest priority first.

    ``$PRTRIGGER_CONFIG`` (if set), then ``./prtrigger.yaml``, then the
    XDG config path.
    """
    paths: list[Path] = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path).expanduser().resolve())
    paths.append(Path.cwd() / CWD_CONFIG_NAME)
    paths.append(get_default_config_path())
    return paths


def discover_config_path(explicit_path: str | Path | None = None) -> Path:
    """Find the configuration file.

    An explicit path (``--config``) must exist; it is never silently
    replaced by another location.

    Args:
        explicit_path: Path given on the command line, if any

    Returns:
        Path of the file to load

    Raises:
        ConfigNotFoundError: If the explicit path or every searched
            location is missing
    """
    if explicit_path:
        path = Path(explicit_path).expanduser().resolve()
        if not path.exists():
            raise ConfigNotFoundError(f"Config file not found: {path}", path)
        return path

    searched = config_search_paths()
    for path in searched:
        if path.exists():
            return path

    locations = "".join(f"\n  - {path}" for path in searched)
    raise ConfigNotFoundError(f"No config file found. Searched locations:{locations}")


def load_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML config file into a mapping.

    An empty file yields an empty mapping.

    Raises:
        ConfigError: If the file is unreadable, malformed, or not a mapping
    """
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}", path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file must contain a YAML mapping, got {type(data).__name__}",
            path,
        )
    return data


def _describe_location(loc: tuple[Any, ...], raw: Any) -> str:
    """Render an error location, naming owners and jobs instead of indices.

    ``("owners", 0, "jobs", 1, "name")`` becomes
    ``owners[hello-world].jobs[PR-7].name`` when the raw entries carry a
    ``name``, and ``owners[0].jobs[1].name`` otherwise.
    """
    rendered = ""
    node = raw
    for part in loc:
        if isinstance(part, int):
            entry = node[part] if isinstance(node, list) and part < len(node) else None
            name = entry.get("name") if isinstance(entry, dict) else None
            rendered += f"[{name}]" if isinstance(name, str) and name else f"[{part}]"
            node = entry
        else:
            rendered += f".{part}" if rendered else str(part)
            node = node.get(part) if isinstance(node, dict) else None
    return rendered or "(root)"


def format_validation_errors(errors: list[dict[str, Any]], raw: Any = None) -> str:
    """Render pydantic error dicts as an indented bullet list.

    Args:
        errors: Error dicts from ``ValidationError.errors()``
        raw: The validated input, used to name owners and jobs
    """
    return "\n".join(f"  - {_describe_location(tuple(err['loc']), raw)}: {err['msg']}" for err in errors)


def load_config(
    path: str | Path | None = None,
    *,
    expand_env: bool = True,
) -> Config:
    """Load and validate the configuration.

    Args:
        path: Explicit config path; discovered when None
        expand_env: Expand ``${VAR}`` references before validating

    Returns:
        Validated Config

    Raises:
        ConfigNotFoundError: If no config file is found
        ConfigError: If the file cannot be read or parsed
        EnvironmentVariableError: If a referenced variable is unset
        ConfigValidationError: If the schema rejects the content
    """
    config_path = discover_config_path(path)
    raw = load_yaml(config_path)

    if expand_env:
        try:
            raw = expand_env_vars(raw)
        except EnvironmentVariableError as e:
            e.path = config_path
            raise

    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        errors = [dict(err) for err in e.errors()]
        raise ConfigValidationError(
            f"Config validation failed ({len(errors)} error(s)):\n{format_validation_errors(errors, raw)}",
            path=config_path,
            validation_errors=errors,
        ) from e
