from __future__ import annotations

import json
import zipfile
from pathlib import Path

from packslim.cli import main


def _zip(path: Path, entries: dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def _names(path: Path) -> set[str]:
    with zipfile.ZipFile(path) as zf:
        return {n for n in zf.namelist() if not n.endswith("/")}


def test_profiles_lists_bundled_profiles(capsys) -> None:
    assert main(["profiles"]) == 0
    names = capsys.readouterr().out.split()
    assert "soft" in names and "hard" in names


def test_run_with_flags(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out"
    _zip(out / "runtime" / "lib" / "modules", {"used": b"u", "unused": b"x"})
    _zip(out / "gdx.jar", {"a.dll": b"", "a.so": b""})
    profile = tmp_path / "p.json"
    profile.write_text(json.dumps({"reduce": [{"archive": "runtime/lib/modules", "paths": ["unused"]}], "remove": []}), encoding="utf-8")

    rc = main(
        [
            "run",
            "--output",
            str(out),
            "--platform",
            "linux64",
            "--minimize",
            str(profile),
            "--remove-platform-libs",
            "gdx.jar",
            "-v",
        ]
    )

    assert rc == 0
    assert _names(out / "runtime" / "lib" / "modules") == {"used"}
    assert _names(out / "gdx.jar") == {"a.so"}
    stdout = capsys.readouterr().out
    assert "Minimizing runtime ..." in stdout
    assert "kb ->" in stdout


def test_run_with_config_file_and_json_report(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    _zip(tmp_path / "dist" / "natives.jar", {"x.dylib": b"", "x.dll": b""})
    (tmp_path / "packslim.toml").write_text(
        """version = 1
platform = "Windows64"
remove_platform_libs = ["natives.jar"]
platform_libs_out_dir = "lib"

[output]
executable = "dist"
""",
        encoding="utf-8",
    )

    assert main(["run", "--json"]) == 0

    report = json.loads(capsys.readouterr().out.split("\n", 1)[1])
    assert report["profile"] is None
    assert report["libs"][0]["removed"] == ["x.dylib"]
    assert report["libs"][0]["extracted"] == ["x.dll"]
    assert (tmp_path / "dist" / "lib" / "x.dll").exists()


def test_flags_override_config_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _zip(tmp_path / "dist" / "natives.jar", {"x.so": b"", "x.dll": b""})
    cfg = tmp_path / "conf" / "slim.toml"
    cfg.parent.mkdir()
    cfg.write_text('version = 1\nplatform = "Windows64"\nremove_platform_libs = ["natives.jar"]\n', encoding="utf-8")

    assert main(["run", "--config", str(cfg), "--platform", "linux", "--output", str(tmp_path / "dist")]) == 0
    assert _names(tmp_path / "dist" / "natives.jar") == {"x.so"}


def test_run_without_platform_is_a_config_error(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PACKSLIM_CONFIG", raising=False)

    assert main(["run", "--output", str(tmp_path)]) == 2
    assert "platform: required" in capsys.readouterr().out


def test_run_without_output_is_a_config_error(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PACKSLIM_CONFIG", raising=False)

    assert main(["run", "--platform", "mac"]) == 2
    assert "output: required" in capsys.readouterr().out


def test_malformed_profile_exits_2_before_touching_bundle(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    jar = _zip(tmp_path / "out" / "a.jar", {"x.dll": b""})
    before = jar.read_bytes()
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")

    rc = main(["run", "--output", str(tmp_path / "out"), "--platform", "linux64", "--minimize", str(bad)])

    assert rc == 2
    assert "error: Invalid minimize profile" in capsys.readouterr().out
    assert jar.read_bytes() == before


def test_corrupt_archive_exits_4(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "broken.jar").write_bytes(b"nope")

    rc = main(["run", "--output", str(tmp_path / "out"), "--platform", "linux64", "--remove-platform-libs", "broken.jar"])

    assert rc == 4
    assert "error: cannot unpack" in capsys.readouterr().out
    assert not (tmp_path / "out" / "broken.jar.tmp").exists()


def test_check_profile(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    assert main(["check-profile", "soft"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("soft: 1 reduce rule(s), 2 remove rule(s)")
    assert "remove [Windows]: 2 path(s)" in out

    assert main(["check-profile", "missing-profile"]) == 1
    assert "No minimize profile 'missing-profile' found" in capsys.readouterr().out
