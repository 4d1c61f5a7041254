from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

from .errors import ConfigParseError, ConfigValidationError
from .models import OutputLocation, Platform, ReduceConfig, parse_platform
from .paths import default_config_path


try:  # Python 3.11+
    import tomllib as _tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover (dev envs < 3.11)
    import tomli as _tomllib  # type: ignore


_ALLOWED_TOP = {
    "version",
    "platform",
    "verbose",
    "minimize",
    "remove_platform_libs",
    "platform_libs_out_dir",
    "strip_patterns",
    "output",
}


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigValidationError(path=path, message="file not found") from e
    except OSError as e:
        raise ConfigValidationError(path=path, message=f"unable to read file: {e}") from e

    try:
        data = _tomllib.loads(text)
    except _tomllib.TOMLDecodeError as e:
        msg = getattr(e, "msg", str(e))
        lineno = getattr(e, "lineno", None)
        colno = getattr(e, "colno", None)
        raise ConfigParseError(path=path, message=str(msg), lineno=lineno, colno=colno) from e

    return data


def _unknown_keys_message(unknown: set[str]) -> str:
    keys = ", ".join(sorted(unknown))
    return f"unknown keys: {keys}"


def _require_str(path: Path, value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ConfigValidationError(path=path, message=f"{where}: expected string")
    return value


def _optional_str(path: Path, value: Any, where: str) -> str | None:
    if value is None:
        return None
    return _require_str(path, value, where)


def _require_bool(path: Path, value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigValidationError(path=path, message=f"{where}: expected bool")
    return value


def _require_int(path: Path, value: Any, where: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigValidationError(path=path, message=f"{where}: expected integer")
    return value


def _require_str_list(path: Path, value: Any, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigValidationError(path=path, message=f"{where}: expected list of strings")
    return value


def require_platform(path: Path, value: Any, where: str = "platform") -> Platform:
    name = _require_str(path, value, where)
    platform = parse_platform(name)
    if platform is None:
        choices = ", ".join(p.desc for p in Platform)
        raise ConfigValidationError(path=path, message=f"{where}: unknown platform {name!r} (expected one of {choices})")
    return platform


def _resolve(base: Path, value: str) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else (base / p)


def parse_reduce_toml_file(path: Path | None = None, *, platform: Platform | None = None) -> ReduceConfig:
    """Load + validate a packslim.toml file into a ReduceConfig.

    `platform` fills in for a config file that does not name one.
    """

    p = path or default_config_path()
    data = _load_toml(p)
    return _parse_reduce(p, data, platform=platform)


def _parse_reduce(path: Path, data: dict[str, Any], *, platform: Platform | None = None) -> ReduceConfig:
    unknown_top = set(data.keys()) - _ALLOWED_TOP
    if unknown_top:
        raise ConfigValidationError(path=path, message=_unknown_keys_message(unknown_top))

    version = _require_int(path, data.get("version"), "version")
    if version != 1:
        raise ConfigValidationError(path=path, message=f"version: expected 1, got {version}")

    if "platform" in data:
        platform = require_platform(path, data.get("platform"))
    if platform is None:
        raise ConfigValidationError(path=path, message="platform: required")

    base = path.parent
    cfg = ReduceConfig(platform=platform)

    if "verbose" in data:
        cfg = replace(cfg, verbose=_require_bool(path, data.get("verbose"), "verbose"))
    if "minimize" in data:
        minimize = _require_str(path, data.get("minimize"), "minimize")
        # Profile names stay as-is; only existing relative files are anchored to the config dir.
        anchored = _resolve(base, minimize)
        cfg = replace(cfg, minimize=str(anchored) if anchored.is_file() else minimize)
    if "remove_platform_libs" in data:
        libs = _require_str_list(path, data.get("remove_platform_libs"), "remove_platform_libs")
        cfg = replace(cfg, remove_platform_libs=tuple(libs))
    if "platform_libs_out_dir" in data:
        out_dir = _require_str(path, data.get("platform_libs_out_dir"), "platform_libs_out_dir")
        cfg = replace(cfg, platform_libs_out_dir=Path(out_dir))
    if "strip_patterns" in data:
        pats = _require_str_list(path, data.get("strip_patterns"), "strip_patterns")
        cfg = replace(cfg, strip_patterns=tuple(pats))

    output_raw = data.get("output")
    if output_raw is not None:
        if not isinstance(output_raw, dict):
            raise ConfigValidationError(path=path, message="output: expected table")
        unknown_output = set(output_raw.keys()) - {"executable", "resources"}
        if unknown_output:
            raise ConfigValidationError(path=path, message=f"output: {_unknown_keys_message(unknown_output)}")
        exe = _resolve(base, _require_str(path, output_raw.get("executable"), "output.executable"))
        res = _optional_str(path, output_raw.get("resources"), "output.resources")
        cfg = replace(
            cfg,
            output=OutputLocation(
                executable_folder=exe,
                resources_folder=_resolve(base, res) if res is not None else exe,
            ),
        )

    return cfg
