from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .archive import join_under, remove_path
from .diagnostics import Diagnostics
from .models import MinimizationProfile, Platform


@dataclass(frozen=True)
class RemoveResult:
    removed: tuple[Path, ...]


def remove_file(path: Path, *, diag: Diagnostics) -> bool:
    if not path.exists() and not path.is_symlink():
        diag.detail(f"No file or directory '{path}' found")
        return False
    diag.detail(f"Removing '{path}'")
    remove_path(path)
    return True


def remove_wildcard(output: Path, pattern: str, *, diag: Diagnostics) -> list[Path]:
    """Remove `pattern` under `output`.

    A `*` splits the pattern into a directory and a name suffix: every
    immediate child of that directory ending with the suffix is removed.
    Only the first `*` is special and matching never descends further.
    """

    idx = pattern.find("*")
    if idx < 0:
        target = join_under(output, pattern)
        if target is None:
            diag.detail(f"Path '{pattern}' is outside '{output}', skipping")
            return []
        return [target] if remove_file(target, diag=diag) else []

    prefix = pattern[:idx].strip("/\\")
    suffix = pattern[idx + 1 :]
    folder = join_under(output, prefix) if prefix else output
    if folder is None:
        diag.detail(f"Path '{pattern}' is outside '{output}', skipping")
        return []
    if not folder.is_dir():
        diag.detail(f"No matching files found in '{pattern}'")
        return []

    removed: list[Path] = []
    for child in sorted(folder.iterdir()):
        if suffix and not child.name.endswith(suffix):
            continue
        if remove_file(child, diag=diag):
            removed.append(child)
    return removed


def remove_platform_files(
    output: Path,
    profile: MinimizationProfile,
    platform: Platform,
    *,
    diag: Diagnostics,
) -> RemoveResult:
    """Apply every `remove` rule of `profile` whose platform pattern matches."""

    removed: list[Path] = []
    for rule in profile.remove:
        if not rule.matches(platform):
            continue
        for pattern in rule.paths:
            removed.extend(remove_wildcard(output, pattern, diag=diag))
    return RemoveResult(removed=tuple(removed))
