import logging
import sys
from functools import wraps
from typing import Any, Callable, TypeVar

logger = logging.getLogger("loxenv")

FRAMES_MAX = 64
MAX_ARGS = 255

# room for FRAMES_MAX calls through nested loops and blocks
RECURSION_LIMIT = 5000
sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

F = TypeVar("F", bound=Callable[..., Any])


def debug_print(message: str, *args: Any) -> None:
    logger.debug(message, *args)


class EntryExit:
    """Decorator tracing entry to and exit from a function at DEBUG level."""

    __slots__ = ("label",)

    def __init__(self, label: str):
        self.label = label

    def __call__(self, function: F) -> F:
        label = self.label

        @wraps(function)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not logger.isEnabledFor(logging.DEBUG):
                return function(*args, **kwargs)

            logger.debug("entering %s", label)
            result = function(*args, **kwargs)
            logger.debug("exiting %s", label)
            return result

        return wrapper  # type: ignore[return-value]


class LoxError(Exception):
    pass


class ParseError(LoxError):
    pass


class LoxRuntimeError(LoxError):
    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def at(self, line: int) -> "LoxRuntimeError":
        # the innermost node wins
        if self.line is None:
            self.line = line
        return self

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"[line {self.line}] {self.message}"


class UndefinedVariable(LoxRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"undefined variable '{name}'")
        self.name = name


class ConstAssignment(LoxRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"cannot assign to const '{name}'")
        self.name = name


class ArityMismatch(LoxRuntimeError):
    def __init__(self, name: str, expected: int, got: int):
        super().__init__(f"{name} expected {expected} arguments: got {got}")
        self.expected = expected
        self.got = got


class NotCallable(LoxRuntimeError):
    pass


class StackOverflow(LoxRuntimeError):
    pass


class OperandError(LoxRuntimeError):
    pass


def check_number(*values: Any) -> bool:
    # bool is an int subclass but never a Lox number
    return all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values)


def is_truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if check_number(value):
        return value != 0
    return True


def values_equal(left: Any, right: Any) -> bool:
    if check_number(left, right):
        return left == right
    return type(left) is type(right) and left == right


def stringify(value: Any) -> str:
    match value:
        case None:
            return "nil"
        case True:
            return "true"
        case False:
            return "false"
        case float() if value.is_integer():
            return str(int(value))
        case _:
            return str(value)
