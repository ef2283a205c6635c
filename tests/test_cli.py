import io
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from codelang import codelang_cli
from codelang.codelang_errors import CodeLangError
from codelang.codelang_runner import CaseReport
from codelang.codelang_samples import SAMPLES

HELLO = 'BEGIN CODE\nDISPLAY: "hi"\nEND CODE'


def test_run_code_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.run_code(source=HELLO, is_string=True)
    assert capsys.readouterr().out == "hi"


def test_run_code_file_input(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    file_path = tmp_path / "hello.code"
    file_path.write_text(HELLO, encoding="utf-8")
    codelang_cli.run_code(source=str(file_path))
    assert capsys.readouterr().out == "hi"


def test_run_code_rejects_other_extensions(tmp_path: Path) -> None:
    file_path = tmp_path / "hello.txt"
    file_path.write_text(HELLO, encoding="utf-8")
    with pytest.raises(ValueError, match="Only .code files"):
        codelang_cli.run_code(source=str(file_path))


def test_run_code_reads_scan_input(capsys: pytest.CaptureFixture[str]) -> None:
    source = "BEGIN CODE\nINT n\nSCAN: n\nDISPLAY: n + 1\nEND CODE"
    codelang_cli.run_code(source=source, is_string=True, stdin=io.StringIO("9\n"))
    assert capsys.readouterr().out == "10"


def test_run_code_pretty_output(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.run_code(source=HELLO, is_string=True, pretty=True)
    out = capsys.readouterr().out
    assert out.startswith("<<< OUTPUT >>>\nhi")
    assert "program executed successfully" in out


def test_run_code_tokens(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.run_code(source=HELLO, is_string=True, show_tokens=True)
    out = capsys.readouterr().out
    assert "BEGINCODE" in out
    assert "'BEGIN CODE'" in out
    assert out.splitlines()[-1].split()[1] == "EOF"
    assert not out.startswith("hi")


def test_run_code_ast(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.run_code(source=HELLO, is_string=True, show_ast=True)
    tree = json.loads(capsys.readouterr().out)
    assert tree["kind"] == "program"
    (output,) = tree["children"]
    assert output["kind"] == "output"
    assert output["children"][0]["value"] == {"type": "STRING", "data": "hi"}


def test_run_code_propagates_language_errors() -> None:
    with pytest.raises(CodeLangError):
        codelang_cli.run_code(source="DISPLAY: 1", is_string=True)


def test_main_entry(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["codelang", "-s", HELLO])
    codelang_cli.main()
    assert capsys.readouterr().out == "hi"


def test_main_passes_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}
    monkeypatch.setattr(codelang_cli, "run_code", lambda **kwargs: seen.update(kwargs))
    codelang_cli.main(["prog.code", "--ast", "--pretty"])
    assert seen["source"] == "prog.code"
    assert seen["is_string"] is False
    assert seen["show_ast"] is True
    assert seen["show_tokens"] is False
    assert seen["pretty"] is True


def test_main_reports_errors_on_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as e:
        codelang_cli.main(["-s", "BEGIN CODE $ DISPLAY: 1 / 0 $ END CODE"])
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert err.strip() == "Error at line: 2. Division by zero."


def test_main_parse_error_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as e:
        codelang_cli.main(["-s", "BEGIN CODE\nINT x\nINT x\nEND CODE"])
    assert e.value.code == 1
    assert "Variable 'x' already declared." in capsys.readouterr().err


def test_main_rounds_infinity(capsys: pytest.CaptureFixture[str]) -> None:
    source = "BEGIN CODE $ FLOAT f = 10000000000000000000.0 $ f *= f * f $ DISPLAY: FLOOR(f) $ END CODE"
    codelang_cli.main(["-s", source])
    assert capsys.readouterr().out == "Infinity"


def test_main_deep_nesting_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    source = "BEGIN CODE\nINT x = " + "(" * 300 + "1" + ")" * 300 + "\nEND CODE"
    with pytest.raises(SystemExit) as e:
        codelang_cli.main(["-s", source])
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert err.strip() == "Error at line: 2. Expression nested too deeply."


def test_main_without_source() -> None:
    with pytest.raises(SystemExit) as e:
        codelang_cli.main([])
    assert e.value.code == 2


def test_main_bad_sample_number() -> None:
    with pytest.raises(SystemExit) as e:
        codelang_cli.main(["--sample", "99"])
    assert e.value.code == 2


def test_main_runs_sample(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.main(["--sample", "5"])
    assert capsys.readouterr().out == "Hello, World"


def test_main_sample_uses_its_input(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.main(["--sample", "11"])
    assert capsys.readouterr().out == "2024 is a leap year"


def test_main_list_samples(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.main(["--list-samples"])
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == len(SAMPLES)
    assert lines[0].split(maxsplit=1) == ["1", SAMPLES[1].title]


def test_main_check_all_pass(capsys: pytest.CaptureFixture[str]) -> None:
    codelang_cli.main(["--check"])
    out = capsys.readouterr().out
    assert out.splitlines()[-1] == f"{len(SAMPLES)}/{len(SAMPLES)} passed"
    assert "[FAIL]" not in out


def test_main_check_failure_exits_one(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        codelang_cli,
        "run_samples",
        lambda: [CaseReport("broken", False, "a", "b", "", None)],
    )
    with pytest.raises(SystemExit) as e:
        codelang_cli.main(["--check"])
    assert e.value.code == 1
    out = capsys.readouterr().out
    assert "[FAIL] broken" in out
    assert "expected 'b', got 'a'" in out


def test_configure_logging_levels(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setenv("CODELANG_LOG_LEVEL", "info")
    codelang_cli.configure_logging()
    codelang_cli.configure_logging(verbose=True)
    monkeypatch.setenv("CODELANG_LOG_LEVEL", "nonsense")
    codelang_cli.configure_logging()
    monkeypatch.delenv("CODELANG_LOG_LEVEL")
    codelang_cli.configure_logging()
    assert [c["level"] for c in calls] == [
        logging.INFO,
        logging.DEBUG,
        logging.WARNING,
        logging.WARNING,
    ]


fragments = st.sampled_from(
    [
        "INT",
        "CHAR",
        "x",
        "=",
        "+=",
        "1",
        "2.5",
        "+",
        "-",
        "*",
        "/",
        "(",
        ")",
        "DISPLAY",
        ":",
        "&",
        "$",
        "\n",
        "IF",
        "BEGIN IF",
        "END IF",
        "x++",
        "'c'",
        '"s"',
        "[",
        "]",
        "#",
        "@",
    ]
)


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])  # type: ignore[misc]
@given(st.lists(fragments, max_size=30))  # type: ignore[misc]
def test_run_code_random_programs_fail_cleanly(
    capsys: pytest.CaptureFixture[str], parts: list[str]
) -> None:
    source = "BEGIN CODE\n" + " ".join(parts) + "\nEND CODE"
    try:
        codelang_cli.run_code(source=source, is_string=True, stdin=io.StringIO())
    except CodeLangError as e:
        assert str(e)
    capsys.readouterr()
