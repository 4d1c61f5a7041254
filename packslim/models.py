from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Platform(Enum):
    """Target platforms of a packaged bundle.

    The value is the descriptor string that `remove` rules match against.
    """

    WINDOWS32 = "Windows32"
    WINDOWS64 = "Windows64"
    LINUX64 = "Linux64"
    LINUX_AARCH64 = "LinuxAarch64"
    MACOS64 = "MacOS64"
    MACOS_AARCH64 = "MacOSAarch64"

    @property
    def desc(self) -> str:
        return self.value


_PLATFORM_ALIASES = {
    "win32": Platform.WINDOWS32,
    "win64": Platform.WINDOWS64,
    "windows": Platform.WINDOWS64,
    "linux": Platform.LINUX64,
    "linux-aarch64": Platform.LINUX_AARCH64,
    "mac": Platform.MACOS64,
    "macos": Platform.MACOS64,
    "macos-aarch64": Platform.MACOS_AARCH64,
}


def parse_platform(name: str) -> Platform | None:
    """Look up a platform by descriptor (case-insensitive) or short alias."""

    key = name.strip().lower()
    for p in Platform:
        if p.value.lower() == key or p.name.lower() == key:
            return p
    return _PLATFORM_ALIASES.get(key)


@dataclass(frozen=True)
class PlatformExtensions:
    """Native library suffixes for one platform family.

    `foreign` are stripped from classpath entries; `native` files are kept
    (or extracted when an output directory is configured).
    """

    foreign: tuple[str, ...]
    native: str


@dataclass(frozen=True)
class ReduceRule:
    archive: str
    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class RemoveRule:
    platform: str
    paths: tuple[str, ...] = ()

    def matches(self, platform: Platform) -> bool:
        # Substring containment only, not a glob.
        return self.platform == "*" or self.platform in platform.desc


@dataclass(frozen=True)
class MinimizationProfile:
    name: str
    reduce: tuple[ReduceRule, ...] = ()
    remove: tuple[RemoveRule, ...] = ()


@dataclass(frozen=True)
class OutputLocation:
    """Where the assembled bundle lives."""

    executable_folder: Path
    resources_folder: Path

    @classmethod
    def single(cls, root: Path) -> "OutputLocation":
        return cls(executable_folder=root, resources_folder=root)


@dataclass(frozen=True)
class ReduceConfig:
    platform: Platform
    verbose: bool = False
    minimize: str | None = None
    remove_platform_libs: tuple[str, ...] = ()
    platform_libs_out_dir: Path | None = None
    strip_patterns: tuple[str, ...] = ()
    output: OutputLocation | None = None
