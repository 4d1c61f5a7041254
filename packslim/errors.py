from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Base exception for runtime configuration errors."""


@dataclass(frozen=True)
class ConfigParseError(ConfigError):
    """Raised when a TOML config file cannot be parsed."""

    path: Path
    message: str
    lineno: int | None = None
    colno: int | None = None

    def __str__(self) -> str:
        loc = ""
        if self.lineno is not None and self.colno is not None:
            loc = f" (line {self.lineno}, column {self.colno})"
        return f"Invalid TOML in {self.path}: {self.message}{loc}"


@dataclass(frozen=True)
class ConfigValidationError(ConfigError):
    """Raised when a parsed config file does not match the expected schema."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"Invalid config in {self.path}: {self.message}"


@dataclass(frozen=True)
class UnsupportedPlatformError(ConfigError):
    """Raised when no native library mapping exists for a platform."""

    platform: str

    def __str__(self) -> str:
        return f"Unsupported platform: {self.platform}"


class ProfileError(Exception):
    """Base exception for minimization profile errors."""


@dataclass(frozen=True)
class MalformedProfileError(ProfileError):
    """Raised when a profile exists but cannot be parsed or validated."""

    source: str
    message: str
    lineno: int | None = None
    colno: int | None = None

    def __str__(self) -> str:
        loc = ""
        if self.lineno is not None and self.colno is not None:
            loc = f" (line {self.lineno}, column {self.colno})"
        return f"Invalid minimize profile {self.source}: {self.message}{loc}"
