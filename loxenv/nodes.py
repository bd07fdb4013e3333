from typing import Any

from loxenv.token import Token


class Node:
    __slots__: tuple[str, ...] = ()

    def __init__(self, *args: Any) -> None:
        for name, value in zip(self.__slots__, args, strict=True):
            setattr(self, name, value)

    def __repr__(self) -> str:
        fields = " ".join(f":{name} {getattr(self, name)!r}" for name in self.__slots__)
        return f"<{type(self).__name__} {fields}>"


class Expr(Node):
    __slots__ = ()


class Stmt(Node):
    __slots__ = ()


# expressions


class Literal(Expr):
    __slots__ = ("value",)
    value: Any


class Grouping(Expr):
    __slots__ = ("expression",)
    expression: Expr


class Variable(Expr):
    __slots__ = ("name",)
    name: Token


class Assign(Expr):
    __slots__ = ("name", "value")
    name: Token
    value: Expr


class Unary(Expr):
    __slots__ = ("operator", "right")
    operator: Token
    right: Expr


class Binary(Expr):
    __slots__ = ("left", "operator", "right")
    left: Expr
    operator: Token
    right: Expr


class Logical(Expr):
    __slots__ = ("left", "operator", "right")
    left: Expr
    operator: Token
    right: Expr


class Call(Expr):
    __slots__ = ("callee", "paren", "arguments")
    callee: Expr
    paren: Token
    arguments: list[Expr]


# statements


class Expression(Stmt):
    __slots__ = ("expression",)
    expression: Expr


class Print(Stmt):
    __slots__ = ("expression",)
    expression: Expr


class Var(Stmt):
    __slots__ = ("name", "initializer", "const")
    name: Token
    initializer: Expr | None
    const: bool


class Block(Stmt):
    __slots__ = ("statements",)
    statements: list[Stmt]


class If(Stmt):
    __slots__ = ("condition", "then_branch", "else_branch")
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


class While(Stmt):
    __slots__ = ("condition", "body")
    condition: Expr
    body: Stmt


class For(Stmt):
    __slots__ = ("initializer", "condition", "update", "body")
    initializer: Stmt | None
    condition: Expr | None
    update: Expr | None
    body: Stmt


class Function(Stmt):
    __slots__ = ("name", "params", "body")
    name: Token
    params: list[Token]
    body: list[Stmt]


class Return(Stmt):
    __slots__ = ("keyword", "value")
    keyword: Token
    value: Expr | None
