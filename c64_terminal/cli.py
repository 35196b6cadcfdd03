"""Console entry points for running the gateway test suite."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Final, Sequence

import pytest
from coverage import Coverage


PROJECT_ROOT: Final = Path(__file__).resolve().parents[1]
TESTS_DIR: Final = PROJECT_ROOT / "tests"
PACKAGE_DIR: Final = PROJECT_ROOT / "c64_terminal"
COVERAGE_FILE: Final = PROJECT_ROOT / ".coverage"
HTML_REPORT_DIR: Final = PROJECT_ROOT / "htmlcov"


def _pytest_args(extra_args: Sequence[str] | None) -> list[str]:
    args = [str(TESTS_DIR)]
    if extra_args:
        args.extend(extra_args)
    return args


def _run_pytest(extra_args: Sequence[str] | None = None) -> int:
    """Run the suite under pytest and return its exit code."""
    return int(pytest.main(_pytest_args(extra_args)))


def _exit(exit_code: int) -> None:
    raise SystemExit(exit_code)


def run_tests() -> None:
    """Run the test suite, forwarding command line arguments to pytest."""
    _exit(_run_pytest(sys.argv[1:]))


def run_coverage() -> None:
    """Run the suite with branch coverage and write terminal and HTML reports."""
    cov = Coverage(source=[str(PACKAGE_DIR)], data_file=str(COVERAGE_FILE), branch=True)
    cov.erase()
    cov.start()
    exit_code = _run_pytest(sys.argv[1:])
    cov.stop()
    cov.save()
    cov.report(skip_covered=True, skip_empty=True, show_missing=True)
    cov.html_report(directory=str(HTML_REPORT_DIR))
    _exit(exit_code)
