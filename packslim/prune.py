from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .archive import editable_entry, join_under, remove_path
from .diagnostics import Diagnostics
from .models import MinimizationProfile, ReduceRule


@dataclass(frozen=True)
class PruneResult:
    removed: tuple[str, ...]
    skipped: tuple[str, ...] = ()
    before: int = 0
    after: int = 0


def unpack_dir_for(target: Path) -> Path:
    """Sibling directory an archive is unpacked into: its name minus the last extension.

    Names without an extension would collide with the archive itself, so
    those get a `<name>.tmp` directory instead.
    """

    stem, dot, _ext = target.name.rpartition(".")
    if not dot or not stem:
        return target.with_name(target.name + ".tmp")
    return target.with_name(stem)


def prune_archive(output: Path, rule: ReduceRule, *, diag: Diagnostics) -> PruneResult | None:
    """Delete `rule.paths` from inside the archive (or directory) `rule.archive`.

    Returns None when the target does not exist.
    """

    target = join_under(output, rule.archive)
    if target is None:
        diag.detail(f"Archive '{rule.archive}' is outside '{output}', skipping")
        return None
    if not target.exists():
        diag.detail(f"No file or directory '{target}' found, skipping")
        return None

    removed: list[str] = []
    skipped: list[str] = []
    with editable_entry(target, unpack_dir_for(target), diag=diag) as entry:
        for rel in rule.paths:
            victim = join_under(entry.path, rel)
            if victim is None:
                diag.detail(f"Path '{rel}' is outside '{target}', skipping")
                skipped.append(rel)
                continue
            if not victim.exists() and not victim.is_symlink():
                diag.detail(f"No file or directory '{victim}' found")
                skipped.append(rel)
                continue
            remove_path(victim)
            removed.append(rel)

    return PruneResult(
        removed=tuple(removed),
        skipped=tuple(skipped),
        before=entry.before,
        after=entry.after,
    )


def prune_archives(output: Path, profile: MinimizationProfile, *, diag: Diagnostics) -> list[PruneResult]:
    """Apply every `reduce` rule of `profile`, in order."""

    results: list[PruneResult] = []
    for rule in profile.reduce:
        res = prune_archive(output, rule, diag=diag)
        if res is not None:
            results.append(res)
    return results
