"""Configuration management for exhaustive-deps."""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from exhaustive_deps.exceptions import ConfigError

OPTIONS_FILE = ".exhaustive-deps.json"
PYPROJECT_TABLE = "exhaustive-deps"

StaticHookOption = bool | list[bool] | dict[str, bool]


@dataclass
class Config:
    """Central configuration with path properties and file discovery defaults."""

    base_dir: Path = field(default_factory=lambda: Path.home() / ".exhaustive-deps")

    # Discovery
    extensions: tuple[str, ...] = (".js", ".jsx", ".mjs", ".cjs")
    exclude_dirs: frozenset[str] = frozenset(
        {"node_modules", ".git", "dist", "build", "coverage", ".next"}
    )
    options_file: str = OPTIONS_FILE

    @property
    def log_dir(self) -> Path:
        return self.base_dir / "logs"

    def ensure_dirs(self) -> None:
        """Create directory tree if it doesn't exist."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


class RuleOptions(BaseModel):
    """Options of the hook dependency rule. Keys are accepted in camelCase."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    check_memoized_variable_is_static: bool = Field(
        default=False, alias="checkMemoizedVariableIsStatic"
    )
    static_hooks: dict[str, StaticHookOption] = Field(default_factory=dict, alias="staticHooks")
    additional_hooks: str | None = Field(default=None, alias="additionalHooks")
    report_static_dependencies: bool = Field(default=False, alias="reportStaticDependencies")

    @field_validator("additional_hooks")
    @classmethod
    def _compile_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                msg = f"additionalHooks is not a valid regular expression: {e}"
                raise ValueError(msg) from e
        return value

    def to_json_dict(self) -> dict[str, Any]:
        """Options as they would be written in an options file."""
        return self.model_dump(by_alias=True)


def parse_options(data: dict[str, Any], source: str = "<options>") -> RuleOptions:
    """Validate a raw options mapping, wrapping pydantic errors in ConfigError."""
    try:
        return RuleOptions.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid options in {source}: {e}"
        raise ConfigError(msg) from e


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot read options file {path}: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"Options file {path} must contain a JSON object"
        raise ConfigError(msg)
    return data


def _read_pyproject_table(path: Path) -> dict[str, Any] | None:
    """The [tool.exhaustive-deps] table of a TOML file, or None if absent."""
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        msg = f"Cannot read options file {path}: {e}"
        raise ConfigError(msg) from e
    table = data.get("tool", {}).get(PYPROJECT_TABLE)
    if table is not None and not isinstance(table, dict):
        msg = f"[tool.{PYPROJECT_TABLE}] in {path} must be a table"
        raise ConfigError(msg)
    return table


def load_options(
    path: Path | str | None = None,
    search_dir: Path | str | None = None,
    config: Config | None = None,
) -> RuleOptions:
    """Load rule options.

    An explicit path may be a JSON options file or a TOML file with a
    ``[tool.exhaustive-deps]`` table. Without one, search_dir (default: the
    working directory) is searched for the options file, then for a
    pyproject.toml carrying the table. Defaults are returned when nothing
    is found.

    Raises:
        ConfigError: unreadable file, unknown keys, or invalid values.
    """
    if config is None:
        config = Config()

    if path is not None:
        path = Path(path)
        if not path.is_file():
            msg = f"Options file not found: {path}"
            raise ConfigError(msg)
        if path.suffix == ".toml":
            table = _read_pyproject_table(path)
            if table is None:
                msg = f"No [tool.{PYPROJECT_TABLE}] table in {path}"
                raise ConfigError(msg)
            return parse_options(table, str(path))
        return parse_options(_read_json(path), str(path))

    directory = Path(search_dir) if search_dir is not None else Path.cwd()
    candidate = directory / config.options_file
    if candidate.is_file():
        return parse_options(_read_json(candidate), str(candidate))

    pyproject = directory / "pyproject.toml"
    if pyproject.is_file():
        table = _read_pyproject_table(pyproject)
        if table is not None:
            return parse_options(table, str(pyproject))

    return RuleOptions()
