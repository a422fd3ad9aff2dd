# test_rpn_repl.py

import pytest
from prompt_toolkit.history import FileHistory, InMemoryHistory

import rpn_repl
from rpn_engine import RPNCalculator
from rpn_repl import REPL, Settings, build_parser, main


class FakeSession:
    """Feeds scripted lines; raises EOFError when they run out."""
    def __init__(self, lines):
        self.lines = list(lines)
        self.prompts = []

    def prompt(self, message):
        self.prompts.append(message)
        if not self.lines:
            raise EOFError()
        item = self.lines.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def output_lines(capsys):
    return capsys.readouterr().out.splitlines()


# ---------------------------
# REPL Tests
# ---------------------------

def test_repl_prints_help_first_and_final_stack_last(capsys):
    repl = REPL(session=FakeSession(["3", "4", "+", "2", "*", "q"]))
    repl.run()
    out = output_lines(capsys)
    assert out[:2] == [
        "Valid operators: +, -, *, /, %",
        "Valid commands: (q)uit, (p)op, (s)how, (c)lear, ?",
    ]
    assert "Result: 7" in out
    assert "Result: 14" in out
    assert out[-1] == "Final stack: [14.0]"

def test_repl_skips_blank_lines_and_reports_invalid(capsys):
    settings = Settings(show_help_on_start=False)
    repl = REPL(settings, session=FakeSession(["", "   ", "x", "1", "q"]))
    repl.run()
    assert output_lines(capsys) == ["Invalid input", "Number: 1", "Final stack: [1.0]"]

def test_repl_ends_on_eof(capsys):
    repl = REPL(Settings(show_help_on_start=False), session=FakeSession(["2"]))
    repl.run()
    assert output_lines(capsys) == ["Number: 2", "Final stack: [2.0]"]

def test_repl_continues_after_keyboard_interrupt(capsys):
    session = FakeSession([KeyboardInterrupt(), "5", "q"])
    REPL(Settings(show_help_on_start=False), session=session).run()
    assert output_lines(capsys) == ["^C", "Number: 5", "Final stack: [5.0]"]

def test_repl_read_failure_ends_session_gracefully(capsys):
    session = FakeSession(["1", OSError("terminal gone"), "2"])
    REPL(Settings(show_help_on_start=False), session=session).run()
    assert output_lines(capsys) == ["Number: 1", "Final stack: [1.0]"]

def test_repl_reports_operator_errors_and_continues(capsys):
    calc = RPNCalculator([5.0, 0.0])
    session = FakeSession(["/", "s", "q"])
    REPL(Settings(show_help_on_start=False), calc, session).run()
    assert output_lines(capsys) == [
        "Error: DivideByZero",
        "Stack: [5.0, 0.0]",
        "Final stack: [5.0, 0.0]",
    ]

def test_repl_uses_configured_prompt():
    session = FakeSession(["q"])
    REPL(Settings(prompt="rpn> ", show_help_on_start=False), session=session).run()
    assert session.prompts == ["rpn> "]

def test_repl_history_selection(tmp_path):
    repl = REPL(Settings(history_file=""))
    assert isinstance(repl._make_history(), InMemoryHistory)
    repl = REPL(Settings(history_file=str(tmp_path / "history")))
    assert isinstance(repl._make_history(), FileHistory)


# ---------------------------
# Settings Tests
# ---------------------------

def test_settings_defaults():
    settings = Settings()
    assert settings.prompt == "> "
    assert settings.log_level == "WARNING"
    assert settings.show_help_on_start
    assert settings.history_path.endswith(".rpn_calc_history")

def test_settings_log_level_normalized_and_validated():
    assert Settings(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValueError):
        Settings(log_level="chatty")

def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("RPN_PROMPT", ">> ")
    monkeypatch.setenv("RPN_LOG_LEVEL", "info")
    monkeypatch.setenv("RPN_SHOW_HELP", "false")
    settings = Settings.from_env()
    assert settings.prompt == ">> "
    assert settings.log_level == "INFO"
    assert settings.show_help_on_start is False

def test_settings_overrides_beat_env(monkeypatch):
    monkeypatch.setenv("RPN_PROMPT", ">> ")
    settings = Settings.from_env({'prompt': "$ ", 'log_level': None})
    assert settings.prompt == "$ "
    assert settings.log_level == "WARNING"


# ---------------------------
# Entry Point Tests
# ---------------------------

def test_parser_collects_push_values():
    args = build_parser().parse_args(["--push", "1.5", "--push", "-2", "--no-help"])
    assert args.push == [1.5, -2.0]
    assert args.no_help

def test_main_seeds_stack_and_returns_zero(capsys):
    session = FakeSession(["+", "q"])
    status = main(["--push", "3", "--push", "4", "--no-help", "--history-file", ""], session=session)
    assert status == 0
    assert output_lines(capsys) == ["Result: 7", "Final stack: [7.0]"]

def test_main_rejects_bad_log_level():
    with pytest.raises(SystemExit):
        main(["--log-level", "chatty"], session=FakeSession([]))

def test_cli_exits_with_main_status(monkeypatch):
    monkeypatch.setattr(rpn_repl, "main", lambda: 0)
    with pytest.raises(SystemExit) as e:
        rpn_repl.cli()
    assert e.value.code == 0
