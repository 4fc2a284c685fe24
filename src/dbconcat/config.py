"""Run configuration and parameter files.

Parameter files hold the lowest-precedence defaults. Two formats:
- plain text: one `key=value` per line, blank lines and `#` comments ignored
- YAML (`.yaml` / `.yml`): a flat mapping of scalar values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from dbconcat.dsl.directive import is_ignorable, split_assignment
from dbconcat.exceptions import ParamFileError

YAML_SUFFIXES = (".yaml", ".yml")


class RunOptions(BaseModel):
    """Inputs of one run, as supplied by the caller."""

    instructions: Path = Field(description="Top-level instruction file")
    base_dir: Path | None = Field(
        default=None,
        description="Base for relative concat paths (default: instructions dir)",
    )
    output: Path | None = Field(
        default=None, description="Used when no `output` directive is seen"
    )
    param_files: list[Path] = Field(
        default_factory=list, description="Default parameter files, in order"
    )
    params: dict[str, str] = Field(
        default_factory=dict, description="Locked parameters (highest precedence)"
    )

    @field_validator("param_files", mode="before")
    @classmethod
    def split_param_files(cls, value: Any) -> Any:
        """Accept `a.txt,b.txt` as well as a list, as `--param-file` does."""
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [p.strip() for item in value for p in str(item).split(",") if p.strip()]
        return value

    @property
    def resolved_base_dir(self) -> Path:
        return self.base_dir if self.base_dir is not None else self.instructions.parent

    def load_defaults(self) -> dict[str, str]:
        """Merge all parameter files; later files override earlier ones."""
        defaults: dict[str, str] = {}
        for path in self.param_files:
            defaults.update(load_param_file(path))
        return defaults


def parse_param_assignment(text: str) -> tuple[str, str]:
    """Parse a `KEY=VALUE` pair as given to `--param`."""
    parts = split_assignment(text)
    if parts is None or not parts[0]:
        raise ValueError(f"expected KEY=VALUE, got {text!r}")
    return parts


def load_param_file(path: Path) -> dict[str, str]:
    """Load one parameter file."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParamFileError(f"error opening parameter file {path}: {e}") from e

    if path.suffix.lower() in YAML_SUFFIXES:
        return _parse_yaml_params(content, path)
    return _parse_text_params(content, path)


def _parse_text_params(content: str, path: Path) -> dict[str, str]:
    params: dict[str, str] = {}
    for lineno, line in enumerate(content.splitlines(), start=1):
        if is_ignorable(line):
            continue
        parts = split_assignment(line.strip())
        if parts is None:
            raise ParamFileError(
                f"{path}:{lineno}: invalid parameter file line format: {line.strip()}"
            )
        key, value = parts
        params[key] = value
    return params


def _parse_yaml_params(content: str, path: Path) -> dict[str, str]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParamFileError(f"invalid YAML in parameter file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParamFileError(f"parameter file {path} must be a mapping")

    params: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ParamFileError(f"{path}: parameter {key!r} must be a scalar")
        params[str(key)] = _scalar_to_str(value)
    return params


def _scalar_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
