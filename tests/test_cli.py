"""Smoke tests for the lexprc command line front end."""

from __future__ import annotations

from pathlib import Path

import pytest

from lexpr.lexprc import main


def test_eval(capsys) -> None:
    assert main(["eval", "1 + 2 * 3"]) == 0
    assert capsys.readouterr().out == "7\n"


def test_eval_with_variables(capsys) -> None:
    assert main(["eval", 'n > 1 ? "many" : "one"', "-v", "n=3"]) == 0
    assert capsys.readouterr().out == "many\n"


def test_eval_variable_coercion(capsys) -> None:
    assert main(["eval", "a + b + c", "-v", "a=1", "-v", "b=0.5", "-v", "c=x"]) == 0
    assert capsys.readouterr().out == "1.5x\n"


def test_eval_boolean_rendering(capsys) -> None:
    assert main(["eval", "1 < 2"]) == 0
    assert capsys.readouterr().out == "true\n"


def test_eval_syntax_error(capsys) -> None:
    assert main(["eval", "1 +"]) == 2
    err = capsys.readouterr().err
    assert "[SYNTAX ERROR]" in err
    assert "Primary expected" in err


def test_eval_evaluation_error(capsys) -> None:
    assert main(["eval", "1 / 0"]) == 2
    assert "[EVAL ERROR]" in capsys.readouterr().err


def test_eval_lenient(capsys) -> None:
    assert main(["eval", "1 / 0", "--lenient"]) == 0
    assert capsys.readouterr().out == "<!-- Division by zero ('1 / 0') -->\n"


def test_invalid_variable_option(capsys) -> None:
    assert main(["eval", "1", "-v", "oops"]) == 2
    assert "[ERROR] ValueError" in capsys.readouterr().err


def test_debug_output(capsys) -> None:
    assert main(["eval", "x * 2", "-v", "x=4", "-D"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "8\n"
    assert "[DEBUG] parsed | x * 2" in captured.err


def test_expand(capsys) -> None:
    assert main(["expand", "--text", "Hi #name#, #n + 1# new", "-v", "name=Ann", "-v", "n=1"]) == 0
    assert capsys.readouterr().out == "Hi Ann, 2 new\n"


def test_expand_custom_delimiter(capsys) -> None:
    assert main(["expand", "--text", "%1+1% #x#", "--delimiter", "%"]) == 0
    assert capsys.readouterr().out == "2 #x#\n"


def test_expand_from_file(tmp_path: Path, capsys) -> None:
    template = tmp_path / "t.txt"
    template.write_text("sum=#a + b#", encoding="utf-8")
    assert main(["expand", "--input", str(template), "-v", "a=2", "-v", "b=3"]) == 0
    assert capsys.readouterr().out == "sum=5\n"


def test_expand_lenient(capsys) -> None:
    assert main(["expand", "--text", "[#x / 0#]", "-v", "x=1", "--lenient"]) == 0
    assert capsys.readouterr().out == "<!-- Division by zero ('1 / 0') -->\n"


def test_lex(capsys) -> None:
    assert main(["lex", "--text", "a + 1"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("000: IDENTIFIER")
    assert lines[2].endswith("'1'  @4")


def test_lex_all_tokens(capsys) -> None:
    assert main(["lex", "--text", "a /* c */", "--all"]) == 0
    out = capsys.readouterr().out
    assert "SPACE" in out
    assert "C_COMMENT" in out


def test_requires_command() -> None:
    with pytest.raises(SystemExit):
        main([])


def test_expand_currency_sign_delimiter(capsys) -> None:
    assert main(["expand", "--text", "$x$", "--delimiter", "$", "-v", "x=1"]) == 0
    assert capsys.readouterr().out == "1\n"
