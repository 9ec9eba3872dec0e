from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MergeToMdError(Exception):
    """Base exception for errors in the merge_to_md package."""


@dataclass(frozen=True)
class GitCommandError(MergeToMdError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip() or "no output"
        return f"`{self.command}` failed with exit code {self.returncode}: {detail}"


@dataclass(frozen=True)
class ConfigFileError(MergeToMdError):
    """Raised when a YAML configuration file cannot be used."""

    file: Path
    message: str = "The configuration file must contain a mapping."

    def __str__(self) -> str:
        return f"{self.file}: {self.message}"
