# rpn_repl.py

"""
Interactive loop for the RPN calculator.

Reads one token per line through prompt_toolkit (persistent history and
completion of the command and operator symbols), hands each non-blank line to
rpn_engine.evaluate and prints the report lines it returns. Settings come from
the environment (a .env file is honoured) and can be overridden on the command
line.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from pydantic import BaseModel, ValidationError, field_validator

from rpn_engine import Command, Operator, RPNCalculator, format_stack, help_lines

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# ---------------------------
# Settings
# ---------------------------

class Settings(BaseModel):
    """Runtime settings for the interactive session."""
    prompt: str = "> "
    history_file: str = "~/.rpn_calc_history"
    log_level: str = "WARNING"
    show_help_on_start: bool = True

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def history_path(self) -> Optional[str]:
        """Expanded history file path, or None when persistent history is disabled."""
        if not self.history_file:
            return None
        return os.path.expanduser(self.history_file)

    @classmethod
    def from_env(cls, overrides: Optional[dict] = None) -> "Settings":
        """
        Build settings from RPN_* environment variables (after loading .env),
        with non-None entries of overrides taking precedence.
        """
        load_dotenv()
        env_map = {
            'prompt': 'RPN_PROMPT',
            'history_file': 'RPN_HISTORY_FILE',
            'log_level': 'RPN_LOG_LEVEL',
            'show_help_on_start': 'RPN_SHOW_HELP',
        }
        data = {}
        for key, var in env_map.items():
            value = os.getenv(var)
            if value is not None:
                data[key] = value
        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value
        return cls(**data)


def setup_logging(level: str = "WARNING") -> None:
    """Configure root logging on stderr so the transcript on stdout stays clean."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


# ---------------------------
# REPL
# ---------------------------

SYMBOLS: List[str] = [c.value for c in Command] + [op.value for op in Operator]

class REPL:
    """
    Read-Eval-Print Loop around an RPNCalculator.

    session may be any object with a prompt(message) method; by default a
    prompt_toolkit PromptSession is created on first use.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 calculator: Optional[RPNCalculator] = None,
                 session=None):
        self.settings = settings or Settings()
        self.calculator = calculator or RPNCalculator()
        self._session = session

    @property
    def session(self):
        if self._session is None:
            self._session = PromptSession(
                history=self._make_history(),
                completer=WordCompleter(SYMBOLS, sentence=True),
            )
        return self._session

    def _make_history(self) -> History:
        path = self.settings.history_path
        if path is None:
            return InMemoryHistory()
        return FileHistory(path)

    def _read_line(self) -> str:
        return self.session.prompt(self.settings.prompt)

    def run(self) -> None:
        """
        Main loop. Ends on Quit, on EOF and on read failures, then prints the final stack.
        """
        if self.settings.show_help_on_start:
            for line in help_lines():
                print(line)

        while True:
            try:
                line = self._read_line()
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                break
            except OSError as e:
                logger.error(f"Failed to read input: {e}")
                break

            if not line.strip():
                continue

            outcome = self.calculator.evaluate(line)
            for report_line in outcome.report:
                print(report_line)
            if outcome.quit:
                break

        print(f"Final stack: {format_stack(self.calculator.stack)}")


# ---------------------------
# Main Entry Point
# ---------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive Reverse Polish Notation calculator.")
    parser.add_argument(
        "--prompt",
        type=str,
        help="Prompt shown before each line (default: '> ').",
    )
    parser.add_argument(
        "--history-file",
        type=str,
        help="File for persistent input history; pass an empty string to keep history in memory.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--no-help",
        action="store_true",
        help="Do not print the operator and command list on start.",
    )
    parser.add_argument(
        "--push",
        type=float,
        action="append",
        default=[],
        metavar="NUMBER",
        help="Push NUMBER onto the stack before the session starts (repeatable).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None, session=None) -> int:
    """
    Entry point for the calculator. Returns the process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {
        'prompt': args.prompt,
        'history_file': args.history_file,
        'log_level': args.log_level,
        'show_help_on_start': False if args.no_help else None,
    }
    try:
        settings = Settings.from_env(overrides)
    except ValidationError as e:
        parser.error(str(e))

    setup_logging(settings.log_level)
    logger.debug(f"Starting session with settings: {settings}")

    repl = REPL(settings, RPNCalculator(args.push), session=session)
    repl.run()
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == '__main__':
    cli()
