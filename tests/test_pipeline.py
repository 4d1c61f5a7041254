from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from packslim.diagnostics import Diagnostics
from packslim.models import OutputLocation, Platform, ReduceConfig
from packslim.pipeline import minimize_runtime, reduce_bundle


def _zip(path: Path, entries: dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def _names(path: Path) -> set[str]:
    with zipfile.ZipFile(path) as zf:
        return {n for n in zf.namelist() if not n.endswith("/")}


def _profile(tmp_path: Path) -> Path:
    p = tmp_path / "profile.json"
    p.write_text(
        json.dumps(
            {
                "reduce": [{"archive": "runtime/lib/modules", "paths": ["unused"]}],
                "remove": [
                    {"platform": "*", "paths": ["runtime/legal"]},
                    {"platform": "Mac", "paths": ["runtime/bin/*.exe"]},
                ],
            }
        ),
        encoding="utf-8",
    )
    return p


def _bundle(root: Path) -> None:
    _zip(root / "runtime" / "lib" / "modules", {"used": b"u", "unused": b"x"})
    (root / "runtime" / "legal").mkdir(parents=True)
    (root / "runtime" / "legal" / "LICENSE").write_text("l", encoding="utf-8")
    (root / "runtime" / "bin").mkdir(parents=True)
    (root / "runtime" / "bin" / "java.exe").write_bytes(b"mz")
    _zip(root / "game.jar", {"lib.dll": b"", "lib.so": b"", "lib.dylib": b"", "notes.txt": b"", "Main.class": b""})


def test_reduce_bundle_runs_both_pipelines(tmp_path: Path) -> None:
    out = tmp_path / "out"
    _bundle(out)
    cfg = ReduceConfig(
        platform=Platform.LINUX64,
        minimize=str(_profile(tmp_path)),
        remove_platform_libs=("game.jar",),
        platform_libs_out_dir=Path("natives"),
        strip_patterns=("*.txt",),
        output=OutputLocation.single(out),
    )

    report = reduce_bundle(cfg, diag=Diagnostics(emit=[].append))

    assert _names(out / "runtime" / "lib" / "modules") == {"used"}
    assert not (out / "runtime" / "legal").exists()
    assert (out / "runtime" / "bin" / "java.exe").exists()
    assert _names(out / "game.jar") == {"Main.class"}
    assert (out / "natives" / "lib.so").exists()

    assert report.minimize is not None
    assert report.minimize.profile == cfg.minimize
    assert report.minimize.pruned[0].removed == ("unused",)
    assert report.minimize.removed == (out / "runtime" / "legal",)
    assert report.libs[0].removed == ("lib.dll", "lib.dylib", "notes.txt")


def test_banners_are_printed_even_when_quiet(tmp_path: Path) -> None:
    out = tmp_path / "out"
    _bundle(out)
    rec: list[str] = []
    cfg = ReduceConfig(platform=Platform.MACOS64, minimize=str(_profile(tmp_path)), remove_platform_libs=("game.jar",))

    reduce_bundle(cfg, OutputLocation.single(out), diag=Diagnostics(emit=rec.append))

    assert rec == ["Minimizing runtime ...", "Removing foreign platform libs ..."]
    assert not (out / "runtime" / "bin" / "java.exe").exists()


def test_nothing_configured_leaves_bundle_untouched(tmp_path: Path) -> None:
    out = tmp_path / "out"
    _bundle(out)
    before = (out / "game.jar").read_bytes()
    rec: list[str] = []

    report = reduce_bundle(ReduceConfig(platform=Platform.LINUX64), OutputLocation.single(out), diag=Diagnostics(emit=rec.append))

    assert report.minimize is None
    assert report.libs == ()
    assert rec == []
    assert (out / "game.jar").read_bytes() == before


def test_missing_profile_skips_minimization(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out"
    _bundle(out)

    res = minimize_runtime(out, ReduceConfig(platform=Platform.LINUX64, minimize="nope"), diag=Diagnostics())

    assert res is not None
    assert res.profile is None
    assert _names(out / "runtime" / "lib" / "modules") == {"used", "unused"}


def test_bundled_profile_by_name(tmp_path: Path) -> None:
    out = tmp_path / "out"
    _zip(out / "jre" / "lib" / "rt.jar", {"com/sun/corba/A.class": b"", "java/lang/Object.class": b""})
    (out / "jre" / "lib" / "rhino.jar").write_bytes(b"")

    res = minimize_runtime(out, ReduceConfig(platform=Platform.LINUX64, minimize="soft"), diag=Diagnostics())

    assert res is not None and res.profile == "soft"
    assert _names(out / "jre" / "lib" / "rt.jar") == {"java/lang/Object.class"}
    assert not (out / "jre" / "lib" / "rhino.jar").exists()


def test_output_location_is_required(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        reduce_bundle(ReduceConfig(platform=Platform.LINUX64), diag=Diagnostics())
