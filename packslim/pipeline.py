from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .diagnostics import Diagnostics
from .models import OutputLocation, ReduceConfig
from .platform_libs import FileFilter, LibsResult, name_filter, remove_platform_libs
from .profile import load_profile
from .prune import PruneResult, prune_archives
from .remove import RemoveResult, remove_platform_files


@dataclass(frozen=True)
class MinimizeResult:
    profile: str | None
    pruned: tuple[PruneResult, ...] = ()
    removed: tuple[Path, ...] = ()


@dataclass(frozen=True)
class ReduceReport:
    minimize: MinimizeResult | None = None
    libs: tuple[LibsResult, ...] = ()


def minimize_runtime(output: Path, config: ReduceConfig, *, diag: Diagnostics) -> MinimizeResult | None:
    """Run the profile pipeline: load the profile, prune archives, remove platform files.

    Does nothing when no profile is configured; a profile that cannot be
    found is reported and skipped.
    """

    if config.minimize is None:
        return None

    diag.info("Minimizing runtime ...")

    profile = load_profile(config.minimize, diag=diag)
    if profile is None:
        return MinimizeResult(profile=None)

    diag.detail(f"Removing files and directories in profile '{config.minimize}' ...")
    pruned = prune_archives(output, profile, diag=diag)
    removed: RemoveResult = remove_platform_files(output, profile, config.platform, diag=diag)
    return MinimizeResult(profile=profile.name, pruned=tuple(pruned), removed=removed.removed)


def reduce_bundle(
    config: ReduceConfig,
    output: OutputLocation | None = None,
    *,
    file_filter: FileFilter | None = None,
    diag: Diagnostics | None = None,
) -> ReduceReport:
    """Shrink an assembled bundle in place.

    The profile pipeline runs against the executable folder, then native
    library filtering runs against the resources folder.
    """

    out = output or config.output
    if out is None:
        raise ValueError("reduce_bundle: no output location configured")
    diag = diag or Diagnostics(verbose=config.verbose)
    if file_filter is None:
        file_filter = name_filter(config.strip_patterns)

    minimized = minimize_runtime(out.executable_folder, config, diag=diag)
    libs = remove_platform_libs(
        out,
        platform=config.platform,
        classpath=config.remove_platform_libs,
        libs_out_dir=config.platform_libs_out_dir,
        file_filter=file_filter,
        diag=diag,
    )
    return ReduceReport(minimize=minimized, libs=tuple(libs))
