#!/usr/bin/env python3
"""Run the photo uploader test suite in Qt offscreen mode.

Usage:
  python scripts/run_tests_offscreen.py [--timeout SECONDS] [--no-uv] [--] [pytest args...]

Examples:
  python scripts/run_tests_offscreen.py tests/test_crop_dialog.py::test_confirm_accepts_with_data_url
  python scripts/run_tests_offscreen.py --log-level debug -- -k resample -q
"""

from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys


def main() -> int:
    p = argparse.ArgumentParser(description="Run pytest with Qt offscreen mode and safe defaults")
    p.add_argument("--timeout", type=int, default=300, help="Maximum seconds to allow the whole pytest run")
    p.add_argument("--verbose", action="store_true", help="Don't use -q (quiet)")
    p.add_argument("--no-uv", action="store_true", help="Run pytest with the current interpreter instead of uv")
    p.add_argument("--log-level", default="warning", help="PHOTO_UPLOADER_LOG_LEVEL for the test run")
    p.add_argument(
        "pytest_args", nargs=argparse.REMAINDER, help="Additional pytest args (e.g. tests/test_file.py::test_name)"
    )
    args = p.parse_args()

    env = os.environ.copy()
    env.setdefault("QT_QPA_PLATFORM", "offscreen")
    env.setdefault("PHOTO_UPLOADER_LOG_LEVEL", args.log_level)

    base_cmd = [sys.executable, "-m", "pytest"] if args.no_uv else ["uv", "run", "python", "-m", "pytest"]
    flags = []
    if not args.verbose:
        flags += ["-q", "-x", "--maxfail=1"]
    # Per-test limit via pytest-timeout; the whole run is bounded by --timeout below
    timeout_flag = [f"--timeout={min(60, args.timeout)}"]
    user_args = [a for a in args.pytest_args if a != "--"]
    cmd = base_cmd + flags + timeout_flag + user_args

    print("Running:", " ".join(shlex.quote(c) for c in cmd))
    try:
        completed = subprocess.run(cmd, env=env, check=False, timeout=args.timeout)
        return completed.returncode
    except subprocess.TimeoutExpired:
        print(f"pytest run timed out after {args.timeout} seconds", file=sys.stderr)
        return 124


if __name__ == "__main__":
    raise SystemExit(main())
