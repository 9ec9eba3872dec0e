from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from merge_to_md.config import DEFAULT_OUT_DIR, FilterConfig, InvocationMode, split_patterns
from merge_to_md.exceptions import ConfigFileError


class FileConfig(BaseModel):
    """Defaults read from a YAML configuration file.

    Example::

        out: docs/context
        except: "**/*.test.ts,**/*.spec.ts"
        include:
          - "**/*.ts"
          - "**/*.tsx"
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    out: str | None = Field(default=None, description="Output directory.")
    name: str | None = Field(default=None, description="Output basename.")
    except_patterns: tuple[str, ...] = Field(default=(), alias="except", description="Exclude patterns.")
    include_patterns: tuple[str, ...] = Field(default=(), alias="include", description="Include patterns.")

    @field_validator("except_patterns", "include_patterns", mode="before")
    @classmethod
    def _split(cls, value: str | list[str] | None) -> tuple[str, ...]:
        return split_patterns(value)


def load_config_file(path: Path) -> FileConfig:
    """Load a YAML configuration file.

    Args:
        path (Path): the file to read

    Raises:
        ConfigFileError: if the file cannot be read or parsed, is not a mapping, or has
            unknown keys.

    Returns:
        FileConfig: the validated configuration (all defaults for an empty file)
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(file=path, message=str(e)) from e
    if data is None:
        return FileConfig()
    if not isinstance(data, dict):
        raise ConfigFileError(file=path)
    try:
        return FileConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigFileError(file=path, message=str(e)) from e


class Settings(BaseModel):
    """Configuration settings for one merge_to_md invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cwd: Path = Field(default_factory=Path.cwd, description="Working directory.")
    paths: list[str] = Field(default_factory=list, description="File or folder paths.")
    out: str = Field(default=DEFAULT_OUT_DIR, description="Output directory.")
    name: str | None = Field(default=None, description="Output basename without .md.")
    except_patterns: tuple[str, ...] = Field(default=(), description="Exclude patterns.")
    include_patterns: tuple[str, ...] = Field(default=(), description="Include patterns.")
    git: bool = Field(default=False, description="Use git changed files as input.")
    config_file: Path | None = Field(default=None, description="YAML configuration file.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator("except_patterns", "include_patterns", mode="before")
    @classmethod
    def _split(cls, value: str | list[str] | None) -> tuple[str, ...]:
        return split_patterns(value)

    @property
    def mode(self) -> InvocationMode:
        """Source of the candidate paths."""
        return InvocationMode.GIT_CHANGED if self.git else InvocationMode.EXPLICIT_PATHS

    @property
    def filter_config(self) -> FilterConfig:
        """Include/exclude patterns for the filtering pipeline."""
        return FilterConfig(
            include_patterns=self.include_patterns,
            exclude_patterns=self.except_patterns,
        )

    @property
    def out_dir(self) -> Path:
        """Output directory, resolved against the working directory."""
        return self.cwd / self.out
