"""Archive codec and filesystem primitives.

Archives are zip files (jars, runtime module bundles). Unpacking and
repacking must preserve every entry that is not explicitly deleted.
"""

from __future__ import annotations

import os
import shutil
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .diagnostics import Diagnostics


class ArchiveError(RuntimeError):
    """Raised when an archive cannot be unpacked or packed."""


@dataclass
class WorkingEntry:
    """An entry opened for editing.

    `before`/`after` hold the archive byte sizes once a packed entry has been
    repacked; both stay 0 for directory entries.
    """

    target: Path
    path: Path
    packed: bool
    before: int = 0
    after: int = 0


def unpack(archive: Path, dest: Path) -> None:
    if dest.exists() and not dest.is_dir():
        raise ArchiveError(f"cannot unpack {archive}: {dest} exists and is not a directory")
    try:
        with zipfile.ZipFile(archive) as zf:
            dest.mkdir(parents=True, exist_ok=True)
            zf.extractall(dest)
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"cannot unpack {archive}: {e}") from e


def pack(src: Path, archive: Path) -> None:
    """Pack the contents of `src` into a new zip at `archive`.

    Empty directories are kept as explicit directory entries.
    """

    if not src.is_dir():
        raise ArchiveError(f"cannot pack {src}: not a directory")
    archive.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for p in sorted(src.rglob("*")):
            rel = p.relative_to(src).as_posix()
            if p.is_dir():
                if not any(p.iterdir()):
                    zf.write(p, rel + "/")
                continue
            zf.write(p, rel)


def join_under(base: Path, rel: str) -> Path | None:
    """Join a rule path onto `base`, or None unless it lands strictly inside `base`.

    Leading separators are dropped, so `/x` means `base/x`.
    """

    joined = Path(os.path.normpath(base / rel.lstrip("/\\")))
    root = Path(os.path.normpath(base))
    if root not in joined.parents:
        return None
    return joined


def remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    if path.is_dir():
        shutil.rmtree(path)


def copy_file(src: Path, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)


@contextmanager
def editable_entry(target: Path, workdir: Path, *, diag: Diagnostics) -> Iterator[WorkingEntry]:
    """Open `target` for in-place editing.

    A directory target is edited as-is and never repacked. An archive target
    is unpacked into `workdir` and, on a clean exit, repacked over the
    original file. `workdir` is removed on every exit path.
    """

    if target.is_dir():
        yield WorkingEntry(target=target, path=target, packed=False)
        return

    if workdir.exists() and not workdir.is_dir():
        raise ArchiveError(f"cannot unpack {target}: {workdir} exists and is not a directory")

    diag.detail(f"Unpacking '{target}' ...")
    if workdir.exists():
        diag.detail(f"Removing leftover directory '{workdir}'")
        remove_path(workdir)

    entry = WorkingEntry(target=target, path=workdir, packed=True)
    try:
        unpack(target, workdir)
        yield entry

        diag.detail(f"Repacking '{target}' ...")
        entry.before = target.stat().st_size
        target.unlink()
        pack(workdir, target)
    finally:
        if workdir.exists():
            remove_path(workdir)

    entry.after = target.stat().st_size
    diag.size_delta(entry.before, entry.after)
