import io
import json
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from stackc import stackc_cli

SOURCE = "=x 5;<x."
ASSEMBLY = "PUSH 5\nSTORE x\nLOAD x\nWRITE\nQUIT\n"


def test_run_stackc_string_prints_assembly(capsys: pytest.CaptureFixture[str]) -> None:
    status = stackc_cli.run_stackc(source=SOURCE, is_string=True)
    assert status == 0
    assert capsys.readouterr().out == ASSEMBLY


def test_run_stackc_fail_has_no_newline(capsys: pytest.CaptureFixture[str]) -> None:
    status = stackc_cli.run_stackc(source="=x;.", is_string=True)
    assert status == 0
    assert capsys.readouterr().out == "FAIL"


def test_run_stackc_file_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    file_path = tmp_path / "prog.stc"
    file_path.write_text(SOURCE)
    stackc_cli.run_stackc(source=str(file_path))
    assert capsys.readouterr().out == ASSEMBLY


def test_run_stackc_rejects_other_suffix(tmp_path: Path) -> None:
    file_path = tmp_path / "prog.txt"
    file_path.write_text(SOURCE)
    with pytest.raises(ValueError, match=".stc"):
        stackc_cli.run_stackc(source=str(file_path))


def test_run_stackc_reads_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO(SOURCE))
    stackc_cli.run_stackc(source=None)
    assert capsys.readouterr().out == ASSEMBLY


def test_run_stackc_output_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output_path = tmp_path / "prog.asm"
    stackc_cli.run_stackc(source=SOURCE, is_string=True, out=str(output_path))
    assert output_path.read_text() == ASSEMBLY
    assert capsys.readouterr().out == ""


def test_run_stackc_tokens(capsys: pytest.CaptureFixture[str]) -> None:
    stackc_cli.run_stackc(source="<x.", is_string=True, show_tokens=True)
    lines = capsys.readouterr().out.splitlines()
    assert [line.split() for line in lines] == [["OUTPUT", "<"], ["IDENT", "x"]]


def test_run_stackc_tokens_even_when_parse_fails(capsys: pytest.CaptureFixture[str]) -> None:
    stackc_cli.run_stackc(source="=x;", is_string=True, show_tokens=True)
    out = capsys.readouterr().out
    assert "FAIL" not in out
    assert out.splitlines()[0].split() == ["ASSIGN", "="]


def test_run_stackc_ast_json(capsys: pytest.CaptureFixture[str]) -> None:
    stackc_cli.run_stackc(source="=y a-2", is_string=True, show_ast=True)
    tree = json.loads(capsys.readouterr().out)
    assert tree == {
        "kind": "assign",
        "name": "y",
        "expr": {
            "kind": "binop",
            "op": "SUB",
            "left": {"kind": "var", "name": "a"},
            "right": {"kind": "int", "value": 2},
        },
    }


def test_run_stackc_ast_on_failure(capsys: pytest.CaptureFixture[str]) -> None:
    stackc_cli.run_stackc(source="{<x", is_string=True, show_ast=True)
    assert capsys.readouterr().out == "FAIL"


def test_run_stackc_listing(capsys: pytest.CaptureFixture[str]) -> None:
    stackc_cli.run_stackc(source="?x <x", is_string=True, listing=True)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "0: LOAD x"
    assert lines[1].startswith("1: JMPF 2")
    assert lines[1].endswith("-> 4")
    assert lines[-1] == "4: QUIT"


def test_run_stackc_execute(capsys: pytest.CaptureFixture[str]) -> None:
    status = stackc_cli.run_stackc(
        source=">a;>b;=c a*b;<c;<a.",
        is_string=True,
        execute=True,
        inputs=[6, 7],
    )
    assert status == 0
    assert capsys.readouterr().out == "42\n6\n"


def test_run_stackc_execute_runtime_error(capsys: pytest.CaptureFixture[str]) -> None:
    status = stackc_cli.run_stackc(source=">a;<a", is_string=True, execute=True)
    captured = capsys.readouterr()
    assert status == 1
    assert captured.out == ""
    assert "Runtime error" in captured.err


def test_run_stackc_execute_step_limit(capsys: pytest.CaptureFixture[str]) -> None:
    status = stackc_cli.run_stackc(
        source="=x 1;@x{=y y+1}", is_string=True, execute=True, step_limit=200
    )
    assert status == 1
    assert "Step limit" in capsys.readouterr().err


def test_run_stackc_max_depth(capsys: pytest.CaptureFixture[str]) -> None:
    source = "=x " + "(" * 10 + "1" + ")" * 10
    stackc_cli.run_stackc(source=source, is_string=True, max_depth=5)
    assert capsys.readouterr().out == "FAIL"


def test_main_entry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["stackc", "-s", SOURCE, "--run", "-i", "3", "-i", "4"])
    called: dict[str, Any] = {}

    def dummy_run(**kwargs: Any) -> int:
        called.update(kwargs)
        return 0

    monkeypatch.setattr(stackc_cli, "run_stackc", dummy_run)
    stackc_cli.main()
    assert called["source"] == SOURCE
    assert called["is_string"] is True
    assert called["execute"] is True
    assert called["inputs"] == [3, 4]
    assert called["show_tokens"] is False


def test_main_exits_with_run_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["stackc", "-s", ">a;<a", "--run"])
    with pytest.raises(SystemExit) as e:
        stackc_cli.main()
    assert e.value.code == 1


def test_main_success_does_not_exit(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["stackc", "-s", SOURCE])
    stackc_cli.main()
    assert capsys.readouterr().out == ASSEMBLY


def test_main_modes_are_exclusive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["stackc", "-s", SOURCE, "--tokens", "--ast"])
    with pytest.raises(SystemExit) as e:
        stackc_cli.main()
    assert e.value.code == 2


def test_main_rejects_zero_depth(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["stackc", "-s", SOURCE, "--max-depth", "0"])
    with pytest.raises(SystemExit) as e:
        stackc_cli.main()
    assert e.value.code == 2


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(st.text())
def test_run_stackc_never_raises_on_text(
    capsys: pytest.CaptureFixture[str], source: str
) -> None:
    assert stackc_cli.run_stackc(source=source, is_string=True) == 0
    out = capsys.readouterr().out
    assert out == "FAIL" or out.endswith("QUIT\n")
