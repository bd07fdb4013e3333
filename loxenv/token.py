from enum import Enum
from string import ascii_letters, digits
from typing import Any

from loxenv.common import LoxError, debug_print


class TokenizationError(LoxError):
    pass


class KeywordTree:
    __slots__ = ("char", "token", "children")

    def __init__(self, char: str):
        self.char = char
        self.token: str | None = None
        self.children: dict["str", "KeywordTree"] = {}

    def add_token(self, token: str) -> None:
        current = self
        for char in token:
            if char in current.children:
                current = current.children[char]
            else:
                current.children[char] = KeywordTree(char)
                current = current.children[char]

        current.token = token

    def longest_match(self, source: str, start: int) -> str | None:
        current = self
        found: str | None = None
        index = start
        while index < len(source) and source[index] in current.children:
            current = current.children[source[index]]
            index += 1
            if current.token is not None:
                found = current.token
        return found


class TokenType(Enum):
    # parens
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"

    # symbols
    COMMA = ","
    MINUS = "-"
    PLUS = "+"
    SEMICOLON = ";"
    SLASH = "/"
    STAR = "*"
    BANG = "!"
    BANG_EQUAL = "!="
    EQUAL = "="
    EQUAL_EQUAL = "=="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="

    # logicals
    AND = "and"
    OR = "or"

    # control flow
    IF = "if"
    ELSE = "else"
    FOR = "for"
    WHILE = "while"
    RETURN = "return"

    # literals
    NUMBER = "number"
    STRING = "string"
    TRUE = "true"
    FALSE = "false"
    NIL = "nil"

    # declarations
    VAR = "var"
    CONST = "const"
    FUN = "fun"

    # statements
    PRINT = "print"

    # other
    IDENTIFIER = "identifier"
    EOF = "eof"

    @staticmethod
    def get(token: str) -> "TokenType":
        for tt in TokenType:
            if tt.value == token:
                return tt
        raise TokenizationError(f"token {token} not found in TokenType")


KEYWORDS = frozenset(
    tt.value
    for tt in (
        TokenType.AND,
        TokenType.OR,
        TokenType.IF,
        TokenType.ELSE,
        TokenType.FOR,
        TokenType.WHILE,
        TokenType.RETURN,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.NIL,
        TokenType.VAR,
        TokenType.CONST,
        TokenType.FUN,
        TokenType.PRINT,
    )
)

KWT = KeywordTree("")
for token in TokenType:
    if token.value not in KEYWORDS and token not in (
        TokenType.NUMBER,
        TokenType.STRING,
        TokenType.IDENTIFIER,
        TokenType.EOF,
    ):
        KWT.add_token(token.value)

DIGITS = frozenset(digits)
LETTERS = frozenset(ascii_letters)
FIRST_CHARS = frozenset(LETTERS.union("_"))
ALPHANUM = frozenset(FIRST_CHARS.union(DIGITS))


class Token:
    __slots__ = ("tokentype", "literal", "value", "start", "line")

    def __init__(self, tokentype: TokenType, literal: str, value: Any, start: int, line: int):
        self.tokentype = tokentype
        self.literal = literal
        self.value = value
        self.start = start
        self.line = line

    def __len__(self) -> int:
        return len(self.literal)

    def __repr__(self) -> str:
        return f"<Token :{self.tokentype} :literal {self.literal!r} :line {self.line}>"


def tokenize(source: str) -> list[Token]:
    current_idx: int = 0
    line: int = 1
    source_length: int = len(source)

    tokens: list[Token] = []

    def at_end(offset: int = 0) -> bool:
        return False if current_idx + offset < source_length else True

    def context() -> str:
        start = max(0, current_idx - 5)
        end = min(source_length, current_idx + 5)
        return source[start:end]

    def digits_from(index: int) -> int:
        while index < source_length and source[index] in DIGITS:
            index += 1
        return index

    def get_number() -> tuple[int, Token]:
        # we already know offset = 0 is a DIGIT
        offset = digits_from(current_idx + 1) - current_idx

        # a trailing dot without digits is not part of the number
        if not at_end(offset + 1) and source[current_idx + offset] == "." and source[current_idx + offset + 1] in DIGITS:
            offset = digits_from(current_idx + offset + 1) - current_idx

        token_str = source[current_idx : current_idx + offset]
        token = Token(TokenType.NUMBER, token_str, float(token_str), current_idx, line)
        return offset, token

    def get_string() -> tuple[int, int, Token]:
        end = source.find('"', current_idx + 1)
        if end == -1:
            raise TokenizationError(f"[line {line}] unterminated string: {context()}")

        token_str = source[current_idx : end + 1]
        token = Token(TokenType.STRING, token_str, token_str[1:-1], current_idx, line)
        return len(token_str), token_str.count("\n"), token

    def until_not_chars(chars: set[str] | frozenset[str]) -> str:
        end = current_idx
        while end < source_length and source[end] in chars:
            end += 1
        return source[current_idx:end]

    while not at_end():
        match char := source[current_idx]:
            case " " | "\t" | "\r":
                current_idx += 1
            case "\n":
                current_idx += 1
                line += 1
            case "/" if source.startswith("//", current_idx):
                end = source.find("\n", current_idx)
                current_idx = source_length if end == -1 else end
            case '"':
                offset, newlines, token = get_string()
                tokens.append(token)
                current_idx += offset
                line += newlines
            case char if char in DIGITS:
                offset, token = get_number()
                tokens.append(token)
                current_idx += offset
            case char if char in FIRST_CHARS:
                token_str = until_not_chars(ALPHANUM)
                tokentype = TokenType.get(token_str) if token_str in KEYWORDS else TokenType.IDENTIFIER
                tokens.append(Token(tokentype, token_str, None, current_idx, line))
                current_idx += len(token_str)
            case _:
                token_str = KWT.longest_match(source, current_idx)
                if token_str is None:
                    raise TokenizationError(f"[line {line}] unexpected character at {current_idx}: {context()}")
                tokens.append(Token(TokenType.get(token_str), token_str, None, current_idx, line))
                current_idx += len(token_str)

    tokens.append(Token(TokenType.EOF, "", None, current_idx, line))

    debug_print("TOKENS: %s", tokens)

    return tokens
