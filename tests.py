"""
Run the Jest test suite.

Usage (from project root):

    python tests.py [pytest args...]

Installs the package with the dev and rl extras when pytest or torch is
missing, then runs pytest with any extra arguments passed through.
"""
from __future__ import annotations

import importlib.util
import subprocess
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parent
REQUIRED = ("pytest", "numpy", "torch")


def missing_modules() -> list[str]:
    return [name for name in REQUIRED if importlib.util.find_spec(name) is None]


def ensure_test_dependencies() -> None:
    missing = missing_modules()
    if not missing:
        return
    print(f"Missing {', '.join(missing)}; installing .[dev,rl] ...")
    subprocess.check_call(
        [sys.executable, "-m", "pip", "install", "-e", ".[dev,rl]"],
        cwd=str(ROOT),
    )


def main(argv: list[str]) -> int:
    ensure_test_dependencies()
    return subprocess.call([sys.executable, "-m", "pytest", *argv], cwd=str(ROOT))


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
