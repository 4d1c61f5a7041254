from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from .archive import copy_file, editable_entry, remove_path
from .diagnostics import Diagnostics
from .errors import UnsupportedPlatformError
from .models import OutputLocation, Platform, PlatformExtensions


FileFilter = Callable[[Path], bool]


def _sidecars(*exts: str) -> tuple[str, ...]:
    out: list[str] = []
    for ext in exts:
        out.extend([ext, f"{ext}.git", f"{ext}.sha1"])
    return tuple(out)


_WINDOWS = PlatformExtensions(foreign=_sidecars(".dylib", ".so"), native=".dll")
_LINUX = PlatformExtensions(foreign=_sidecars(".dll", ".dylib"), native=".so")
_MACOS = PlatformExtensions(foreign=_sidecars(".dll", ".so"), native=".dylib")

_EXTENSIONS: dict[Platform, PlatformExtensions] = {
    Platform.WINDOWS32: _WINDOWS,
    Platform.WINDOWS64: _WINDOWS,
    Platform.LINUX64: _LINUX,
    Platform.LINUX_AARCH64: _LINUX,
    Platform.MACOS64: _MACOS,
    Platform.MACOS_AARCH64: _MACOS,
}


def platform_extensions(platform: Platform) -> PlatformExtensions:
    try:
        return _EXTENSIONS[platform]
    except KeyError:
        raise UnsupportedPlatformError(platform=str(platform)) from None


def no_filter(_path: Path) -> bool:
    return False


def name_filter(patterns: Iterable[str]) -> FileFilter:
    """Build a filter flagging files whose name matches any fnmatch pattern."""

    pats = tuple(patterns)
    if not pats:
        return no_filter

    def _match(path: Path) -> bool:
        return any(fnmatch.fnmatchcase(path.name, p) for p in pats)

    return _match


@dataclass(frozen=True)
class LibsResult:
    entry: str
    removed: tuple[str, ...] = ()
    extracted: tuple[str, ...] = ()
    before: int = 0
    after: int = 0


def filter_classpath_entry(
    jar: Path,
    exts: PlatformExtensions,
    *,
    file_filter: FileFilter,
    libs_out: Path | None,
    diag: Diagnostics,
) -> LibsResult | None:
    """Strip foreign native libraries from the top level of one classpath entry."""

    if not jar.exists():
        diag.detail(f"No classpath entry '{jar}' found, skipping")
        return None
    if jar.is_dir():
        diag.detail(f"JAR '{jar.name}' is a directory")

    removed: list[str] = []
    extracted: list[str] = []
    with editable_entry(jar, jar.with_name(jar.name + ".tmp"), diag=diag) as entry:
        for f in sorted(entry.path.iterdir()):
            if file_filter(f):
                diag.detail(f"Removing '{f}' (filtered)")
                remove_path(f)
                removed.append(f.name)
                continue
            if f.name.endswith(exts.foreign):
                diag.detail(f"Removing '{f}'")
                remove_path(f)
                removed.append(f.name)
                continue
            if libs_out is not None and f.name.endswith(exts.native):
                diag.detail(f"Extracting '{f}'")
                copy_file(f, libs_out / f.name)
                remove_path(f)
                extracted.append(f.name)

    return LibsResult(
        entry=jar.name,
        removed=tuple(removed),
        extracted=tuple(extracted),
        before=entry.before,
        after=entry.after,
    )


def remove_platform_libs(
    output: OutputLocation,
    *,
    platform: Platform,
    classpath: Iterable[str],
    libs_out_dir: Path | None = None,
    file_filter: FileFilter | None = None,
    diag: Diagnostics,
) -> list[LibsResult]:
    """Strip platform-foreign shared libraries from each classpath entry.

    Entries are looked up by file name under the resources folder. When
    `libs_out_dir` is set (relative to the executable folder), native
    libraries for `platform` are moved out of the entries into it.
    """

    entries = list(classpath)
    if not entries:
        return []

    exts = platform_extensions(platform)

    libs_out: Path | None = None
    if libs_out_dir is not None:
        libs_out = output.executable_folder / libs_out_dir
        libs_out.mkdir(parents=True, exist_ok=True)

    diag.info("Removing foreign platform libs ...")

    results: list[LibsResult] = []
    for cp in entries:
        jar = output.resources_folder / Path(cp).name
        res = filter_classpath_entry(
            jar,
            exts,
            file_filter=file_filter or no_filter,
            libs_out=libs_out,
            diag=diag,
        )
        if res is not None:
            results.append(res)
    return results
