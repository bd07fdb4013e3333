import math
import sys
import time
from enum import Enum, auto
from typing import IO, Any, Sequence

from loxenv.common import (
    FRAMES_MAX,
    LoxRuntimeError,
    OperandError,
    StackOverflow,
    check_number,
    debug_print,
    is_truthy,
    stringify,
    values_equal,
)
from loxenv.environment import Scope
from loxenv.loop import run_for_loop
from loxenv.nodes import (
    Assign,
    Binary,
    Block,
    Call,
    Expr,
    Expression,
    For,
    Function,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Stmt,
    Unary,
    Var,
    Variable,
    While,
)
from loxenv.object import ObjNative, invoke, make_closure
from loxenv.parser import Parser
from loxenv.token import TokenType


class InterpretResult(Enum):
    OK = auto()
    COMPILE_ERROR = auto()
    RUNTIME_ERROR = auto()


class ReturnSignal(Exception):
    """Unwinds a function body back to its call."""

    def __init__(self, value: Any):
        super().__init__()
        self.value = value


def clock() -> float:
    return float(time.time_ns() // 1_000_000)


NATIVES = (ObjNative("clock", 0, clock),)


class Interpreter:
    __slots__ = ("globals", "frames", "stdout")

    def __init__(self, stdout: IO[str] | None = None) -> None:
        self.globals = Scope()
        self.frames: int = 0
        self.stdout = stdout

        for native in NATIVES:
            self.globals.declare(native.name, native)

    def interpret(self, source: str) -> InterpretResult:
        statements = Parser(source).parse()
        debug_print("interpreting %d statements", len(statements))
        for statement in statements:
            try:
                self.execute(statement, self.globals)
            except RecursionError:
                raise StackOverflow("stack overflow") from None
        return InterpretResult.OK

    def execute_block(self, statements: Sequence[Stmt], scope: Scope) -> None:
        for statement in statements:
            self.execute(statement, scope)

    def run_body(self, body: Sequence[Stmt], activation: Scope) -> Any:
        try:
            self.execute_block(body, activation)
        except ReturnSignal as signal:
            return signal.value
        return None

    def execute_for(self, stmt: For, scope: Scope) -> None:
        initializer, condition, update = stmt.initializer, stmt.condition, stmt.update

        def initialize(current: Scope) -> None:
            assert initializer is not None
            self.execute(initializer, current)

        def test(current: Scope) -> Any:
            assert condition is not None
            return self.evaluate(condition, current)

        def advance(current: Scope) -> None:
            assert update is not None
            self.evaluate(update, current)

        def body(current: Scope) -> None:
            self.execute(stmt.body, current)

        run_for_loop(
            scope,
            None if initializer is None else initialize,
            None if condition is None else test,
            None if update is None else advance,
            body,
        )

    def execute(self, stmt: Stmt, scope: Scope) -> None:
        match stmt:
            case Expression():
                self.evaluate(stmt.expression, scope)
            case Print():
                print(stringify(self.evaluate(stmt.expression, scope)), file=self.stdout or sys.stdout)
            case Var():
                value = None if stmt.initializer is None else self.evaluate(stmt.initializer, scope)
                scope.declare(stmt.name.literal, value, stmt.const)
            case Block():
                self.execute_block(stmt.statements, scope.child())
            case If():
                if is_truthy(self.evaluate(stmt.condition, scope)):
                    self.execute(stmt.then_branch, scope)
                elif stmt.else_branch is not None:
                    self.execute(stmt.else_branch, scope)
            case While():
                while is_truthy(self.evaluate(stmt.condition, scope)):
                    self.execute(stmt.body, scope)
            case For():
                self.execute_for(stmt, scope)
            case Function():
                name = stmt.name.literal
                closure = make_closure(name, [param.literal for param in stmt.params], stmt.body, scope)
                scope.declare(name, closure)
            case Return():
                value = None if stmt.value is None else self.evaluate(stmt.value, scope)
                raise ReturnSignal(value)
            case _:
                raise NotImplementedError(f"statement {stmt!r} not implemented")

    def evaluate(self, expr: Expr, scope: Scope) -> Any:
        match expr:
            case Literal():
                return expr.value
            case Grouping():
                return self.evaluate(expr.expression, scope)
            case Variable():
                try:
                    return scope.get(expr.name.literal)
                except LoxRuntimeError as error:
                    raise error.at(expr.name.line)
            case Assign():
                value = self.evaluate(expr.value, scope)
                try:
                    return scope.assign(expr.name.literal, value)
                except LoxRuntimeError as error:
                    raise error.at(expr.name.line)
            case Logical():
                left = self.evaluate(expr.left, scope)
                if expr.operator.tokentype == TokenType.OR:
                    if is_truthy(left):
                        return left
                elif not is_truthy(left):
                    return left
                return self.evaluate(expr.right, scope)
            case Unary():
                right = self.evaluate(expr.right, scope)
                match expr.operator.tokentype:
                    case TokenType.BANG:
                        return not is_truthy(right)
                    case TokenType.MINUS:
                        if not check_number(right):
                            raise OperandError("operand must be a number", expr.operator.line)
                        return -right
                    case _:
                        raise OperandError("unknown unary operator", expr.operator.line)
            case Binary():
                left = self.evaluate(expr.left, scope)
                right = self.evaluate(expr.right, scope)
                return self.binary_op(expr, left, right)
            case Call():
                callee = self.evaluate(expr.callee, scope)
                arguments = [self.evaluate(argument, scope) for argument in expr.arguments]

                if self.frames == FRAMES_MAX:
                    raise StackOverflow("stack overflow", expr.paren.line)

                self.frames += 1
                try:
                    return invoke(callee, arguments, self.run_body)
                except LoxRuntimeError as error:
                    raise error.at(expr.paren.line)
                except RecursionError:
                    raise StackOverflow("stack overflow", expr.paren.line) from None
                finally:
                    self.frames -= 1
            case _:
                raise NotImplementedError(f"expression {expr!r} not implemented")

    def binary_op(self, expr: Binary, left: Any, right: Any) -> Any:
        line = expr.operator.line

        match tokentype := expr.operator.tokentype:
            case TokenType.EQUAL_EQUAL:
                return values_equal(left, right)
            case TokenType.BANG_EQUAL:
                return not values_equal(left, right)
            case TokenType.PLUS:
                if isinstance(left, str) and isinstance(right, str):
                    return left + right
                if not check_number(left, right):
                    raise OperandError("operands must be two numbers or two strings", line)
                return left + right

        if not check_number(left, right):
            raise OperandError("operands must be numbers", line)

        match tokentype:
            case TokenType.MINUS:
                return left - right
            case TokenType.STAR:
                return left * right
            case TokenType.SLASH:
                if right == 0:
                    # IEEE 754 semantics rather than ZeroDivisionError
                    if left == 0 or math.isnan(left):
                        return math.nan
                    return math.copysign(math.inf, left) * math.copysign(1.0, right)
                return left / right
            case TokenType.LESS:
                return left < right
            case TokenType.LESS_EQUAL:
                return left <= right
            case TokenType.GREATER:
                return left > right
            case TokenType.GREATER_EQUAL:
                return left >= right
            case _:
                raise OperandError(f"invalid binary operator {tokentype}", line)

    def __repr__(self) -> str:
        return f"<Interpreter :frames {self.frames} :globals {list(self.globals.bindings)}>"
