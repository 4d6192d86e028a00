#!/usr/bin/env python3
"""Run repository checks: ruff, pyright, then pytest in Qt offscreen mode.

Usage:
  python scripts/run_checks.py [--no-tests] [--] [pytest args...]

Exits non-zero on the first failing step so CI can observe status.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys


def run(cmd: list[str], env: dict[str, str] | None = None) -> int:
    print("=>", " ".join(cmd))
    return subprocess.run(cmd, env=env, check=False).returncode


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--no-tests", action="store_true", help="Skip running pytest")
    parser.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Extra pytest args")
    args = parser.parse_args()

    steps: list[tuple[str, list[str]]] = [
        ("ruff", [sys.executable, "-m", "ruff", "check", "image_converter", "tests"]),
        ("pyright", [sys.executable, "-m", "pyright"]),
    ]
    for name, cmd in steps:
        if run(cmd) != 0:
            print(f"{name} failed")
            return 1

    if not args.no_tests:
        env = os.environ.copy()
        # Checksum workers are QThreads; no window system is needed
        env.setdefault("QT_QPA_PLATFORM", "offscreen")
        extra = [a for a in args.pytest_args if a != "--"]
        rc = run([sys.executable, "-m", "pytest", "-q", *extra], env=env)
        if rc != 0:
            print("pytest failed")
            return rc

    print("All checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
