#!/usr/bin/env python3
"""Run the formatters, linters and the test suite in one go.

Steps run in order and all output is collected so every failure is visible:
black, isort, ruff, pylint, then pytest.
"""

from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent

CHECKS = [
    (["black", ".", "--check"], "black"),
    (["isort", ".", "--check-only"], "isort"),
    (["ruff", "check", "."], "ruff"),
    (["pylint", "app", "core", "infrastructure", "main.py"], "pylint"),
    (["pytest", "-q"], "pytest"),
]


def run_check(args: list[str], name: str) -> tuple[bool, str]:
    """Run `python -m <args>` from the project root; return (passed, output)."""
    cmd = [sys.executable, "-m", *args]
    print(f"\n{'=' * 60}\n{name}: {' '.join(cmd)}\n{'=' * 60}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"FAILED to start: {e}")
        return False, str(e)

    output = result.stdout + result.stderr
    passed = result.returncode == 0
    print("passed" if passed else "FAILED")
    if output.strip():
        print(output)
    return passed, output


def main() -> None:
    results = [(name, *run_check(args, name)) for args, name in CHECKS]

    print(f"\n{'=' * 60}\nSummary\n{'=' * 60}")
    for name, passed, _ in results:
        print(f"{name:<8} {'ok' if passed else 'FAILED'}")

    failed = [name for name, passed, _ in results if not passed]
    if failed:
        print(f"\nFailed: {', '.join(failed)}")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
