"""
Batch runner for CODE programs.

Feeds known input to a program, captures everything it displays, and compares
the captured text against the expected output. Mismatches come with a unified
diff so the failing characters are easy to spot.

Functions:
    run_case(source, stdin=""): Run one program and capture output and error.
    check_case(name, source, stdin, expected): Run and compare one program.
    run_samples(): Check every built-in sample.
    format_report(reports): Render reports as text for the CLI.
"""

import difflib
import io
import logging
from typing import NamedTuple

from codelang.codelang_errors import CodeLangError
from codelang.codelang_eval import run_source
from codelang.codelang_samples import SAMPLES


class CaseResult(NamedTuple):
    output: str
    error: CodeLangError | None


class CaseReport(NamedTuple):
    name: str
    passed: bool
    output: str
    expected: str
    diff: str
    error: CodeLangError | None


def run_case(source: str, stdin: str = "") -> CaseResult:
    """Runs one program, capturing its output and any CODE language error.

    Output written before a failure is kept in the result.
    """
    out = io.StringIO()
    try:
        run_source(source, output=out, input_stream=io.StringIO(stdin))
    except CodeLangError as e:
        return CaseResult(out.getvalue(), e)
    return CaseResult(out.getvalue(), None)


def check_case(name: str, source: str, stdin: str, expected: str) -> CaseReport:
    result = run_case(source, stdin)
    passed = result.error is None and result.output == expected
    diff = ""
    if not passed:
        diff = "\n".join(
            difflib.unified_diff(
                expected.splitlines(),
                result.output.splitlines(),
                fromfile=f"{name} (expected)",
                tofile=f"{name} (actual)",
                lineterm="",
            )
        )
    logging.debug("Case %s: %s", name, "ok" if passed else "FAILED")
    return CaseReport(name, passed, result.output, expected, diff, result.error)


def run_samples() -> list[CaseReport]:
    return [
        check_case(f"sample {number}", sample.source, sample.stdin, sample.expected)
        for number, sample in SAMPLES.items()
    ]


def format_report(reports: list[CaseReport]) -> str:
    lines: list[str] = []
    for report in reports:
        status = "PASS" if report.passed else "FAIL"
        lines.append(f"[{status}] {report.name}")
        if report.error is not None:
            lines.append(f"    {report.error}")
        if report.diff:
            lines.extend(f"    {line}" for line in report.diff.splitlines())
        elif not report.passed:
            lines.append(f"    expected {report.expected!r}, got {report.output!r}")
    passed = sum(1 for r in reports if r.passed)
    lines.append(f"{passed}/{len(reports)} passed")
    return "\n".join(lines)


__all__ = ["CaseReport", "CaseResult", "check_case", "format_report", "run_case", "run_samples"]
