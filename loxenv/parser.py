from enum import IntEnum, auto
from typing import Callable

from loxenv.common import MAX_ARGS, EntryExit, ParseError, debug_print
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
from loxenv.token import Token, TokenType, tokenize


class Precedence(IntEnum):
    NONE = auto()
    ASSIGNMENT = auto()  # =
    OR = auto()  # or
    AND = auto()  # and
    EQUALITY = auto()  # == !=
    COMPARISON = auto()  # > >= < <=
    TERM = auto()  # + -
    FACTOR = auto()  # * /
    UNARY = auto()  # ! -
    CALL = auto()  # ()
    PRIMARY = auto()

    def next_precedence(self) -> "Precedence":
        value = self.value + 1
        for pt in Precedence:
            if pt.value == value:
                return pt
        raise ParseError("unknown precedence")


class Parser:
    __slots__ = ("tokens", "current_index", "function_depth")

    def __init__(self, source: str) -> None:
        self.tokens: list[Token] = tokenize(source)
        self.current_index: int = 0
        self.function_depth: int = 0

    def peek(self, distance: int = 0) -> Token:
        index = self.current_index + distance
        if not 0 <= index < len(self.tokens):
            raise ParseError("bad index")

        return self.tokens[index]

    def check(self, tokentype: TokenType) -> bool:
        return self.tokens[self.current_index].tokentype == tokentype

    def match(self, tokentype: TokenType) -> bool:
        if self.check(tokentype):
            self.current_index += 1
            return True
        return False

    def consume(self, tokentype: TokenType, msg: str) -> Token:
        if not self.match(tokentype):
            raise self.error(msg)
        return self.peek(-1)

    def error(self, msg: str) -> ParseError:
        token = self.peek()
        where = "end" if token.tokentype == TokenType.EOF else repr(token.literal)
        return ParseError(f"[line {token.line}] error at {where}: {msg}")

    def parse(self) -> list[Stmt]:
        statements: list[Stmt] = []
        try:
            while not self.match(TokenType.EOF):
                statements.append(self.declaration())
        except RecursionError:
            raise self.error("too much nesting") from None

        debug_print("STATEMENTS: %s", statements)
        return statements

    @EntryExit("Parser.argument_list")
    def argument_list(self) -> list[Expr]:
        arguments: list[Expr] = []
        if not self.check(TokenType.RIGHT_PAREN):
            arguments.append(self.expression())
            while self.match(TokenType.COMMA):
                if len(arguments) == MAX_ARGS:
                    raise self.error(f"cannot have more than {MAX_ARGS} arguments")
                arguments.append(self.expression())
        self.consume(TokenType.RIGHT_PAREN, "expect ) after arguments")
        return arguments

    @EntryExit("Parser.parse_precedence")
    def parse_precedence(self, precedence: Precedence) -> Expr:
        self.current_index += 1

        can_assign = precedence <= Precedence.ASSIGNMENT

        prefix = ParseRules[self.peek(-1).tokentype].prefix
        if prefix is None:
            self.current_index -= 1
            raise self.error("expect expression")
        expr = prefix(self, can_assign)

        while precedence <= ParseRules[self.peek().tokentype].precedence:
            self.current_index += 1

            infix = ParseRules[self.peek(-1).tokentype].infix
            if infix is None:
                raise ParseError(f"no infix rule for {self.peek(-1).tokentype}")
            expr = infix(self, expr, can_assign)

        if can_assign and self.check(TokenType.EQUAL):
            raise self.error("invalid assignment target")

        return expr

    @EntryExit("Parser.expression")
    def expression(self) -> Expr:
        return self.parse_precedence(Precedence.ASSIGNMENT)

    @EntryExit("Parser.expression_statement")
    def expression_statement(self) -> Stmt:
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "expect ; after expression")
        return Expression(expr)

    @EntryExit("Parser.print_statement")
    def print_statement(self) -> Stmt:
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "expect ; after value")
        return Print(value)

    @EntryExit("Parser.if_statement")
    def if_statement(self) -> Stmt:
        self.consume(TokenType.LEFT_PAREN, "expect ( after if")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "expect ) after if condition")

        then_branch = self.statement()
        else_branch = self.statement() if self.match(TokenType.ELSE) else None
        return If(condition, then_branch, else_branch)

    @EntryExit("Parser.while_statement")
    def while_statement(self) -> Stmt:
        self.consume(TokenType.LEFT_PAREN, "expect ( after while")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "expect ) after condition")
        return While(condition, self.statement())

    @EntryExit("Parser.for_statement")
    def for_statement(self) -> Stmt:
        self.consume(TokenType.LEFT_PAREN, "expect ( after for")

        initializer: Stmt | None
        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.variable_declaration(const=False)
        elif self.match(TokenType.CONST):
            initializer = self.variable_declaration(const=True)
        else:
            initializer = self.expression_statement()

        condition = None if self.check(TokenType.SEMICOLON) else self.expression()
        self.consume(TokenType.SEMICOLON, "expect ; after loop condition")

        update = None if self.check(TokenType.RIGHT_PAREN) else self.expression()
        self.consume(TokenType.RIGHT_PAREN, "expect ) after for clauses")

        return For(initializer, condition, update, self.statement())

    @EntryExit("Parser.return_statement")
    def return_statement(self) -> Stmt:
        keyword = self.peek(-1)
        if self.function_depth == 0:
            raise ParseError(f"[line {keyword.line}] cannot return from top-level code")

        value = None if self.check(TokenType.SEMICOLON) else self.expression()
        self.consume(TokenType.SEMICOLON, "expect ; after return value")
        return Return(keyword, value)

    def statement(self) -> Stmt:
        if self.match(TokenType.PRINT):
            return self.print_statement()
        elif self.match(TokenType.IF):
            return self.if_statement()
        elif self.match(TokenType.WHILE):
            return self.while_statement()
        elif self.match(TokenType.FOR):
            return self.for_statement()
        elif self.match(TokenType.RETURN):
            return self.return_statement()
        elif self.match(TokenType.LEFT_BRACE):
            return Block(self.block())
        else:
            return self.expression_statement()

    @EntryExit("Parser.variable_declaration")
    def variable_declaration(self, const: bool) -> Stmt:
        name = self.consume(TokenType.IDENTIFIER, "expect variable name")

        initializer: Expr | None = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()
        elif const:
            raise self.error("expect = after const name")

        self.consume(TokenType.SEMICOLON, "expect ; after variable declaration")
        return Var(name, initializer, const)

    @EntryExit("Parser.function_declaration")
    def function_declaration(self) -> Stmt:
        name = self.consume(TokenType.IDENTIFIER, "expect function name")
        self.consume(TokenType.LEFT_PAREN, "expect ( after function name")

        params: list[Token] = []
        if not self.check(TokenType.RIGHT_PAREN):
            params.append(self.consume(TokenType.IDENTIFIER, "expect parameter name"))
            while self.match(TokenType.COMMA):
                if len(params) == MAX_ARGS:
                    raise self.error(f"can't have more than {MAX_ARGS} parameters")
                params.append(self.consume(TokenType.IDENTIFIER, "expect parameter name"))
        self.consume(TokenType.RIGHT_PAREN, "expect ) after parameters")

        self.consume(TokenType.LEFT_BRACE, "expect { before function body")
        self.function_depth += 1
        try:
            body = self.block()
        finally:
            self.function_depth -= 1

        return Function(name, params, body)

    def declaration(self) -> Stmt:
        if self.match(TokenType.VAR):
            return self.variable_declaration(const=False)
        elif self.match(TokenType.CONST):
            return self.variable_declaration(const=True)
        elif self.match(TokenType.FUN):
            return self.function_declaration()
        else:
            return self.statement()

    def block(self) -> list[Stmt]:
        statements: list[Stmt] = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.check(TokenType.EOF):
            statements.append(self.declaration())

        self.consume(TokenType.RIGHT_BRACE, "expect } after block")
        return statements


def parse(source: str) -> list[Stmt]:
    return Parser(source).parse()


@EntryExit("Parser.binary")
def binary(parser: Parser, left: Expr, _: bool) -> Expr:
    operator = parser.peek(-1)
    right = parser.parse_precedence(ParseRules[operator.tokentype].precedence.next_precedence())

    match operator.tokentype:
        case TokenType.AND | TokenType.OR:
            return Logical(left, operator, right)
        case _:
            return Binary(left, operator, right)


@EntryExit("Parser.unary")
def unary(parser: Parser, _: bool) -> Expr:
    operator = parser.peek(-1)
    return Unary(operator, parser.parse_precedence(Precedence.UNARY))


@EntryExit("Parser.literal")
def literal(parser: Parser, _: bool) -> Expr:
    previous = parser.peek(-1)

    match tokentype := previous.tokentype:
        case TokenType.TRUE:
            return Literal(True)
        case TokenType.FALSE:
            return Literal(False)
        case TokenType.NIL:
            return Literal(None)
        case TokenType.NUMBER | TokenType.STRING:
            return Literal(previous.value)
        case _:
            raise ParseError(f"unknown literal {tokentype}")


@EntryExit("Parser.grouping")
def grouping(parser: Parser, _: bool) -> Expr:
    expr = parser.expression()
    parser.consume(TokenType.RIGHT_PAREN, "expect ) after expression")
    return Grouping(expr)


@EntryExit("Parser.variable")
def variable(parser: Parser, can_assign: bool) -> Expr:
    name = parser.peek(-1)
    if can_assign and parser.match(TokenType.EQUAL):
        return Assign(name, parser.expression())
    return Variable(name)


@EntryExit("Parser.call")
def call(parser: Parser, callee: Expr, _: bool) -> Expr:
    paren = parser.peek(-1)
    return Call(callee, paren, parser.argument_list())


PrefixFn = Callable[[Parser, bool], Expr]
InfixFn = Callable[[Parser, Expr, bool], Expr]


class ParseRule:
    __slots__ = ("prefix", "infix", "precedence")

    def __init__(self, prefix: None | PrefixFn, infix: None | InfixFn, precedence: Precedence):
        self.prefix = prefix
        self.infix = infix
        self.precedence = precedence

    def __repr__(self) -> str:
        return "<ParseRule ...>"


# fmt: off
ParseRules = {
    TokenType.LEFT_PAREN:    ParseRule(grouping,  call,   Precedence.CALL       ),
    TokenType.RIGHT_PAREN:   ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.LEFT_BRACE:    ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.RIGHT_BRACE:   ParseRule(None,      None,   Precedence.NONE       ),

    TokenType.COMMA:         ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.SEMICOLON:     ParseRule(None,      None,   Precedence.NONE       ),

    TokenType.PLUS:          ParseRule(None,      binary, Precedence.TERM       ),
    TokenType.MINUS:         ParseRule(unary,     binary, Precedence.TERM       ),
    TokenType.STAR:          ParseRule(None,      binary, Precedence.FACTOR     ),
    TokenType.SLASH:         ParseRule(None,      binary, Precedence.FACTOR     ),
    TokenType.BANG:          ParseRule(unary,     None,   Precedence.NONE       ),
    TokenType.BANG_EQUAL:    ParseRule(None,      binary, Precedence.EQUALITY   ),
    TokenType.EQUAL:         ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.EQUAL_EQUAL:   ParseRule(None,      binary, Precedence.EQUALITY   ),
    TokenType.GREATER:       ParseRule(None,      binary, Precedence.COMPARISON ),
    TokenType.GREATER_EQUAL: ParseRule(None,      binary, Precedence.COMPARISON ),
    TokenType.LESS:          ParseRule(None,      binary, Precedence.COMPARISON ),
    TokenType.LESS_EQUAL:    ParseRule(None,      binary, Precedence.COMPARISON ),

    TokenType.AND:           ParseRule(None,      binary, Precedence.AND        ),
    TokenType.OR:            ParseRule(None,      binary, Precedence.OR         ),

    TokenType.IF:            ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.ELSE:          ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.FOR:           ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.WHILE:         ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.RETURN:        ParseRule(None,      None,   Precedence.NONE       ),

    TokenType.NUMBER:        ParseRule(literal,   None,   Precedence.NONE       ),
    TokenType.STRING:        ParseRule(literal,   None,   Precedence.NONE       ),
    TokenType.TRUE:          ParseRule(literal,   None,   Precedence.NONE       ),
    TokenType.FALSE:         ParseRule(literal,   None,   Precedence.NONE       ),
    TokenType.NIL:           ParseRule(literal,   None,   Precedence.NONE       ),

    TokenType.VAR:           ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.CONST:         ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.FUN:           ParseRule(None,      None,   Precedence.NONE       ),
    TokenType.PRINT:         ParseRule(None,      None,   Precedence.NONE       ),

    TokenType.IDENTIFIER:    ParseRule(variable,  None,   Precedence.NONE       ),
    TokenType.EOF:           ParseRule(None,      None,   Precedence.NONE       ),
}
# fmt: on
