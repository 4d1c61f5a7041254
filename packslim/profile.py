"""Minimization profile loading.

A profile is identified either by a filesystem path or by the name of a
profile bundled with packslim. Absence is not an error: `load_profile`
returns None. A profile that exists but cannot be parsed raises
MalformedProfileError before anything in the output tree is touched.

Document shape (JSON, or YAML for .yaml/.yml files):

    {
      "reduce": [{"archive": "jre/lib/rt.jar", "paths": ["com/sun/corba"]}],
      "remove": [{"platform": "Windows", "paths": ["jre/bin/*.exe"]}]
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import yaml

from .diagnostics import Diagnostics
from .errors import MalformedProfileError
from .models import MinimizationProfile, ReduceRule, RemoveRule
from .paths import profiles_dir


_PROFILE_SUFFIXES = (".json", ".yaml", ".yml")


def _expect_mapping(value: Any, *, src: str, ctx: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedProfileError(source=src, message=f"{ctx} must be an object")
    return value


def _expect_list(value: Any, *, src: str, ctx: str) -> list[Any]:
    if not isinstance(value, list):
        raise MalformedProfileError(source=src, message=f"{ctx} must be an array")
    return value


def _expect_str(value: Any, *, src: str, ctx: str) -> str:
    if not isinstance(value, str):
        raise MalformedProfileError(source=src, message=f"{ctx} must be a string")
    return value


def _expect_str_tuple(value: Any, *, src: str, ctx: str) -> tuple[str, ...]:
    items = _expect_list(value, src=src, ctx=ctx)
    return tuple(_expect_str(v, src=src, ctx=f"{ctx}[{i}]") for i, v in enumerate(items))


def _decode(text: str, *, src: str, yaml_doc: bool) -> Any:
    if yaml_doc:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            raise MalformedProfileError(
                source=src,
                message=str(getattr(e, "problem", None) or e),
                lineno=mark.line + 1 if mark is not None else None,
                colno=mark.column + 1 if mark is not None else None,
            ) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedProfileError(source=src, message=e.msg, lineno=e.lineno, colno=e.colno) from e


def parse_profile(text: str, *, name: str, yaml_doc: bool = False) -> MinimizationProfile:
    data = _expect_mapping(_decode(text, src=name, yaml_doc=yaml_doc), src=name, ctx="top-level")

    reduce: list[ReduceRule] = []
    for i, raw in enumerate(_expect_list(data.get("reduce", []), src=name, ctx="reduce")):
        rule = _expect_mapping(raw, src=name, ctx=f"reduce[{i}]")
        reduce.append(
            ReduceRule(
                archive=_expect_str(rule.get("archive"), src=name, ctx=f"reduce[{i}].archive"),
                paths=_expect_str_tuple(rule.get("paths", []), src=name, ctx=f"reduce[{i}].paths"),
            )
        )

    remove: list[RemoveRule] = []
    for i, raw in enumerate(_expect_list(data.get("remove", []), src=name, ctx="remove")):
        rule = _expect_mapping(raw, src=name, ctx=f"remove[{i}]")
        remove.append(
            RemoveRule(
                platform=_expect_str(rule.get("platform"), src=name, ctx=f"remove[{i}].platform"),
                paths=_expect_str_tuple(rule.get("paths", []), src=name, ctx=f"remove[{i}].paths"),
            )
        )

    return MinimizationProfile(name=name, reduce=tuple(reduce), remove=tuple(remove))


def _read_profile_file(path: Path, *, name: str) -> MinimizationProfile:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedProfileError(source=name, message="not valid UTF-8 text") from e
    return parse_profile(text, name=name, yaml_doc=path.suffix.lower() in {".yaml", ".yml"})


def bundled_profile_path(name: str) -> Path | None:
    """Resolve a bundled profile by bare name (`soft`) or file name (`soft.json`)."""

    base = profiles_dir()
    candidates = [base / name, *(base / f"{name}{suffix}" for suffix in _PROFILE_SUFFIXES)]
    for p in candidates:
        if p.is_file() and p.parent == base:
            return p
    return None


def list_bundled_profiles() -> list[str]:
    base = profiles_dir()
    if not base.is_dir():
        return []
    return sorted(p.stem for p in base.iterdir() if p.is_file() and p.suffix in _PROFILE_SUFFIXES)


def load_profile(identifier: str, *, diag: Diagnostics | None = None) -> MinimizationProfile | None:
    """Load a profile by filesystem path, then by bundled name.

    Returns None when neither exists.
    """

    diag = diag or Diagnostics()

    p = Path(identifier).expanduser()
    if p.is_file():
        return _read_profile_file(p, name=identifier)

    bundled = bundled_profile_path(identifier)
    if bundled is not None:
        return _read_profile_file(bundled, name=bundled.stem)

    diag.detail(f"No minimize profile '{identifier}' found")
    return None
