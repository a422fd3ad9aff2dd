# rpn_engine.py

"""
Evaluation engine for the RPN calculator.

Each input line is a single token: a number, an operator or a control command.
The engine classifies the token and applies it to an operand stack. It performs
no I/O; the interactive loop lives in rpn_repl.py and only relays the report
lines produced here.

Modules, Classes, and Functions Implemented
-------------------------------------------
- Error classes: CalculatorError, OperatorError, NotEnoughOperands, DivideByZero, ModuloByZero
- Operand stack: OperandStack
- Token classifier: TokenKind, Token, try_get_command, try_get_operator, try_get_number, classify
- Operators: Operator
- Commands: Command, CommandResult, execute_command, help_lines
- Evaluation: Outcome, evaluate, RPNCalculator
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

Number = float


def to_number(value: float) -> Number:
    """Round a value to single precision. Out-of-range values become +/-inf."""
    with np.errstate(over='ignore'):
        return float(np.float32(value))


# ---------------------------
# Error Classes
# ---------------------------

class CalculatorError(Exception):
    """Base class for calculator errors."""
    pass

class OperatorError(CalculatorError):
    """Raised when an operator cannot be applied to the stack.

    Carries no payload beyond its kind; the stack is left as it was before the call.
    """
    name = "OperatorError"

    def __str__(self) -> str:
        return self.name

class NotEnoughOperands(OperatorError):
    """Raised when the stack holds fewer operands than the operator needs."""
    name = "NotEnoughOperands"

class DivideByZero(OperatorError):
    """Raised when the divisor is exactly 0.0."""
    name = "DivideByZero"

class ModuloByZero(OperatorError):
    """Raised when the modulus is exactly 0.0."""
    name = "ModuloByZero"


# ---------------------------
# Number Formatting
# ---------------------------

def format_number(value: Number) -> str:
    """
    Render a value for Result, Number and Popped reports.

    Integer-valued numbers drop the fractional part; others use the shortest
    text that reads back as the same single-precision value.
    """
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(np.float32(value))

def _format_stack_item(value: Number) -> str:
    if math.isfinite(value) and value.is_integer():
        return f"{int(value)}.0"
    return str(np.float32(value))

def format_stack(values: Iterable[Number]) -> str:
    """Render stack contents bottom to top; whole numbers keep a trailing .0."""
    return "[" + ", ".join(_format_stack_item(v) for v in values) + "]"


# ---------------------------
# Operand Stack
# ---------------------------

class OperandStack:
    """
    LIFO sequence of numbers. The tail of the underlying list is the top.
    Arity checks belong to the operators, so nothing here raises.
    """
    def __init__(self, values: Optional[Iterable[Number]] = None):
        self._items: List[Number] = [to_number(v) for v in values] if values else []

    def push(self, value: Number) -> None:
        self._items.append(to_number(value))

    def pop(self) -> Optional[Number]:
        """Remove and return the top value, or None if the stack is empty."""
        if not self._items:
            return None
        return self._items.pop()

    def peek(self) -> Optional[Number]:
        return self._items[-1] if self._items else None

    def snapshot(self) -> List[Number]:
        """Copy of the contents, bottom to top."""
        return list(self._items)

    def clear(self) -> List[Number]:
        """Empty the stack and return what it held."""
        before = self.snapshot()
        self._items.clear()
        return before

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Number]:
        return iter(list(self._items))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, OperandStack):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OperandStack({self._items!r})"


# ---------------------------
# Operators
# ---------------------------

def _apply_add(stack: OperandStack) -> Number:
    if len(stack) < 2:
        raise NotEnoughOperands()
    b = stack.pop()
    a = stack.pop()
    answer = to_number(a + b)
    stack.push(answer)
    return answer

def _apply_subtract(stack: OperandStack) -> Number:
    # A lone operand is negated.
    if len(stack) == 0:
        raise NotEnoughOperands()
    b = stack.pop()
    if len(stack) == 0:
        answer = -b
    else:
        a = stack.pop()
        answer = to_number(a - b)
    stack.push(answer)
    return answer

def _apply_multiply(stack: OperandStack) -> Number:
    if len(stack) < 2:
        raise NotEnoughOperands()
    b = stack.pop()
    a = stack.pop()
    answer = to_number(a * b)
    stack.push(answer)
    return answer

def _apply_divide(stack: OperandStack) -> Number:
    if len(stack) < 2:
        raise NotEnoughOperands()
    b = stack.pop()
    a = stack.pop()
    if b == 0.0:
        stack.push(a)
        stack.push(b)
        raise DivideByZero()
    answer = to_number(a / b)
    stack.push(answer)
    return answer

def _apply_modulo(stack: OperandStack) -> Number:
    if len(stack) < 2:
        raise NotEnoughOperands()
    b = stack.pop()
    a = stack.pop()
    if b == 0.0:
        stack.push(a)
        stack.push(b)
        raise ModuloByZero()
    # Truncated remainder: the result takes the sign of the dividend.
    with np.errstate(invalid='ignore'):
        answer = float(np.fmod(np.float32(a), np.float32(b)))
    stack.push(answer)
    return answer


class Operator(Enum):
    """Arithmetic operators, keyed by their input symbol."""
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    def apply(self, stack: OperandStack) -> Number:
        """
        Apply the operator to the stack and return the value left on top.

        The top of the stack is the right-hand operand. Raises an OperatorError
        subclass on failure, in which case the stack is unchanged.
        """
        return _APPLY[self](stack)


_APPLY: Dict[Operator, Callable[[OperandStack], Number]] = {
    Operator.ADD: _apply_add,
    Operator.SUBTRACT: _apply_subtract,
    Operator.MULTIPLY: _apply_multiply,
    Operator.DIVIDE: _apply_divide,
    Operator.MODULO: _apply_modulo,
}


# ---------------------------
# Commands
# ---------------------------

class Command(Enum):
    """Session commands, keyed by their input symbol."""
    QUIT = "q"
    POP = "p"
    SHOW = "s"
    CLEAR = "c"
    HELP = "?"

HELP_OPERATORS = "Valid operators: " + ", ".join(op.value for op in Operator)
HELP_COMMANDS = "Valid commands: (q)uit, (p)op, (s)how, (c)lear, ?"

def help_lines() -> List[str]:
    return [HELP_OPERATORS, HELP_COMMANDS]


@dataclass
class CommandResult:
    """Report lines produced by a command, and whether the session should end."""
    report: List[str] = field(default_factory=list)
    quit: bool = False

def execute_command(command: Command, stack: OperandStack) -> CommandResult:
    """
    Run a session command against the stack.

    Show and Clear render the stack the same way, bottom to top.
    """
    if command is Command.QUIT:
        return CommandResult(quit=True)
    if command is Command.POP:
        value = stack.pop()
        if value is None:
            return CommandResult(["Stack is empty"])
        return CommandResult([f"Popped: {format_number(value)}"])
    if command is Command.SHOW:
        return CommandResult([f"Stack: {format_stack(stack.snapshot())}"])
    if command is Command.CLEAR:
        before = stack.clear()
        return CommandResult([f"Clearing stack: {format_stack(before)}"])
    if command is Command.HELP:
        return CommandResult(help_lines())
    raise ValueError(f"Unknown command: {command!r}")


# ---------------------------
# Token Classifier
# ---------------------------

class TokenKind(Enum):
    COMMAND = "command"
    OPERATOR = "operator"
    NUMBER = "number"
    INVALID = "invalid"

@dataclass(frozen=True)
class Token:
    """A classified input token. value is a Command, an Operator, a float or the raw text."""
    kind: TokenKind
    value: Any
    text: str

_COMMANDS: Dict[str, Command] = {c.value: c for c in Command}
_OPERATORS: Dict[str, Operator] = {op.value: op for op in Operator}

def try_get_command(text: str) -> Optional[Command]:
    return _COMMANDS.get(text.strip())

def try_get_operator(text: str) -> Optional[Operator]:
    return _OPERATORS.get(text.strip())

def try_get_number(text: str) -> Optional[Number]:
    """Parse a float literal; None if the text is not one."""
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return to_number(value)

def classify(text: str) -> Token:
    """
    Classify a line as a command, operator, number or invalid token, in that order.
    """
    stripped = text.strip()
    command = try_get_command(stripped)
    if command is not None:
        return Token(TokenKind.COMMAND, command, stripped)
    operator = try_get_operator(stripped)
    if operator is not None:
        return Token(TokenKind.OPERATOR, operator, stripped)
    number = try_get_number(stripped)
    if number is not None:
        return Token(TokenKind.NUMBER, number, stripped)
    return Token(TokenKind.INVALID, stripped, stripped)


# ---------------------------
# Evaluation
# ---------------------------

@dataclass
class Outcome:
    """Result of evaluating one token against the stack."""
    token: Token
    report: List[str] = field(default_factory=list)
    value: Optional[Number] = None
    error: Optional[OperatorError] = None
    quit: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.token.kind is not TokenKind.INVALID

def evaluate(line: str, stack: OperandStack) -> Outcome:
    """
    Process one input line against the stack.

    Operator errors are reported in the outcome, never raised. An empty line is
    a caller error; the interactive loop skips blank lines before calling in.
    """
    if not line.strip():
        raise ValueError("evaluate() needs a non-empty token")

    token = classify(line)
    logger.debug(f"Classified {token.text!r} as {token.kind.value}")

    if token.kind is TokenKind.COMMAND:
        result = execute_command(token.value, stack)
        return Outcome(token, result.report, quit=result.quit)

    if token.kind is TokenKind.OPERATOR:
        try:
            answer = token.value.apply(stack)
        except OperatorError as e:
            logger.info(f"Operator {token.text} failed: {e} (stack={format_stack(stack)})")
            return Outcome(token, [f"Error: {e}"], error=e)
        logger.debug(f"Applied {token.text} -> {answer!r}")
        return Outcome(token, [f"Result: {format_number(answer)}"], value=answer)

    if token.kind is TokenKind.NUMBER:
        stack.push(token.value)
        return Outcome(token, [f"Number: {format_number(token.value)}"], value=token.value)

    return Outcome(token, ["Invalid input"])


class RPNCalculator:
    """
    One evaluation session: a stack plus the evaluate entry point.
    """
    def __init__(self, values: Optional[Iterable[Number]] = None):
        self.stack = OperandStack(values)

    def evaluate(self, line: str) -> Outcome:
        return evaluate(line, self.stack)

    def run(self, lines: Iterable[str]) -> List[Outcome]:
        """
        Evaluate lines in order, skipping blank ones, and stop after Quit.
        """
        outcomes: List[Outcome] = []
        for line in lines:
            if not line.strip():
                continue
            outcome = self.evaluate(line)
            outcomes.append(outcome)
            if outcome.quit:
                break
        return outcomes
