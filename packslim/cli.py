from __future__ import annotations

import argparse
import json
from dataclasses import replace
from pathlib import Path

from .archive import ArchiveError
from .diagnostics import Diagnostics
from .errors import ConfigError, ConfigValidationError, ProfileError
from .models import OutputLocation, Platform, ReduceConfig, parse_platform
from .paths import default_config_path


def _platform_arg(value: str) -> Platform:
    platform = parse_platform(value)
    if platform is None:
        raise argparse.ArgumentTypeError(f"unknown platform: {value}")
    return platform


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="packslim",
        description="Shrink a packaged runtime bundle in place",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Minimize the runtime and strip foreign native libraries")
    run.add_argument("--config", type=Path, default=None, help="Config file (default: ./packslim.toml if present)")
    run.add_argument("--output", type=Path, default=None, help="Bundle executable folder")
    run.add_argument("--resources", type=Path, default=None, help="Bundle resources folder (default: --output)")
    run.add_argument("--platform", type=_platform_arg, default=None, help="Target platform (e.g. Linux64, mac)")
    run.add_argument("--minimize", type=str, default=None, help="Minimize profile: file path or bundled name")
    run.add_argument(
        "--remove-platform-libs",
        dest="remove_platform_libs",
        nargs="+",
        default=None,
        help="Classpath entries to strip foreign native libraries from",
    )
    run.add_argument("--platform-libs-out-dir", type=Path, default=None, help="Extract kept native libraries here")
    run.add_argument("--strip", dest="strip_patterns", action="append", default=None, help="Extra file name pattern to strip")
    run.add_argument("-v", "--verbose", action="store_true", help="Print every step")
    run.add_argument("--json", dest="json_output", action="store_true", help="Print a JSON report")

    sub.add_parser("profiles", help="List bundled minimize profiles")

    chk = sub.add_parser("check-profile", help="Parse a minimize profile and summarize its rules")
    chk.add_argument("profile")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        return _run(args)
    except ConfigError as e:
        print(f"error: {e}")
        return 2
    except ProfileError as e:
        print(f"error: {e}")
        return 2
    except ArchiveError as e:
        print(f"error: {e}")
        return 4
    except Exception as e:  # pragma: no cover
        print(f"error: {e}")
        return 1


def _resolve_config(args: argparse.Namespace) -> ReduceConfig:
    """Merge the config file (if any) with CLI flags; flags win."""

    from .config import parse_reduce_toml_file

    cfg_path: Path | None = args.config
    if cfg_path is None and default_config_path().is_file():
        cfg_path = default_config_path()

    if cfg_path is not None:
        cfg = parse_reduce_toml_file(cfg_path, platform=args.platform)
    else:
        if args.platform is None:
            raise ConfigValidationError(path=default_config_path(), message="platform: required (use --platform)")
        cfg = ReduceConfig(platform=args.platform)

    if args.platform is not None:
        cfg = replace(cfg, platform=args.platform)
    if args.verbose:
        cfg = replace(cfg, verbose=True)
    if args.minimize is not None:
        cfg = replace(cfg, minimize=args.minimize)
    if args.remove_platform_libs is not None:
        cfg = replace(cfg, remove_platform_libs=tuple(args.remove_platform_libs))
    if args.platform_libs_out_dir is not None:
        cfg = replace(cfg, platform_libs_out_dir=args.platform_libs_out_dir)
    if args.strip_patterns is not None:
        cfg = replace(cfg, strip_patterns=tuple(args.strip_patterns))

    if args.output is not None:
        exe = args.output.resolve()
        res = args.resources.resolve() if args.resources is not None else exe
        cfg = replace(cfg, output=OutputLocation(executable_folder=exe, resources_folder=res))
    elif args.resources is not None and cfg.output is not None:
        cfg = replace(cfg, output=replace(cfg.output, resources_folder=args.resources.resolve()))

    if cfg.output is None:
        raise ConfigValidationError(
            path=cfg_path or default_config_path(),
            message="output: required (use --output or an [output] table)",
        )
    return cfg


def _run(args: argparse.Namespace) -> int:
    if args.cmd == "run":
        from .pipeline import reduce_bundle

        cfg = _resolve_config(args)
        report = reduce_bundle(cfg, diag=Diagnostics(verbose=cfg.verbose))
        if args.json_output:
            out = {
                "profile": report.minimize.profile if report.minimize else None,
                "pruned": [
                    {"removed": list(r.removed), "before": r.before, "after": r.after}
                    for r in (report.minimize.pruned if report.minimize else ())
                ],
                "removed": [str(p) for p in (report.minimize.removed if report.minimize else ())],
                "libs": [
                    {
                        "entry": r.entry,
                        "removed": list(r.removed),
                        "extracted": list(r.extracted),
                        "before": r.before,
                        "after": r.after,
                    }
                    for r in report.libs
                ],
            }
            print(json.dumps(out, indent=2, sort_keys=True))
        return 0

    if args.cmd == "profiles":
        from .profile import list_bundled_profiles

        for name in list_bundled_profiles():
            print(name)
        return 0

    if args.cmd == "check-profile":
        from .profile import load_profile

        profile = load_profile(args.profile, diag=Diagnostics(verbose=True))
        if profile is None:
            return 1
        print(f"{profile.name}: {len(profile.reduce)} reduce rule(s), {len(profile.remove)} remove rule(s)")
        for rule in profile.reduce:
            print(f"reduce {rule.archive}: {len(rule.paths)} path(s)")
        for rule in profile.remove:
            print(f"remove [{rule.platform}]: {len(rule.paths)} path(s)")
        return 0

    raise AssertionError(f"unhandled cmd: {args.cmd}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
