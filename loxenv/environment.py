"""Binding cells and the lexical scope chain.

A `Scope` maps names to `Cell` objects and links to its enclosing scope.
Closures hold on to the scope that was live when they were created, so every
read goes through the live chain and every write lands in the shared cell.
"""

from typing import Any

from loxenv.common import ConstAssignment, UndefinedVariable, debug_print


class Cell:
    __slots__ = ("value", "const")

    def __init__(self, value: Any, const: bool = False):
        self.value = value
        self.const = const

    def __repr__(self) -> str:
        return f"<Cell :value {self.value!r} :const {self.const}>"


class Scope:
    __slots__ = ("bindings", "parent")

    def __init__(self, parent: "Scope | None" = None) -> None:
        self.bindings: dict[str, Cell] = {}
        self.parent = parent

    def declare(self, name: str, value: Any, const: bool = False) -> Cell:
        """Install a fresh cell for `name` in this scope.

        An existing entry of the same name in this scope is replaced by the new
        cell, its old cell is left untouched. Enclosing scopes are never
        modified, so an outer binding of the same name is shadowed, not erased.
        """
        cell = Cell(value, const)
        self.bindings[name] = cell
        debug_print("declare %s = %r", name, value)
        return cell

    def resolve(self, name: str) -> Cell | None:
        scope: Scope | None = self
        while scope is not None:
            cell = scope.bindings.get(name)
            if cell is not None:
                return cell
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Cell:
        cell = self.resolve(name)
        if cell is None:
            raise UndefinedVariable(name)
        return cell

    def get(self, name: str) -> Any:
        return self.lookup(name).value

    def assign(self, name: str, value: Any) -> Any:
        cell = self.lookup(name)
        if cell.const:
            raise ConstAssignment(name)
        cell.value = value
        return value

    def child(self) -> "Scope":
        return Scope(self)

    @property
    def depth(self) -> int:
        depth = 0
        scope = self.parent
        while scope is not None:
            depth += 1
            scope = scope.parent
        return depth

    def __contains__(self, name: str) -> bool:
        return name in self.bindings

    def __repr__(self) -> str:
        return f"<Scope :depth {self.depth} :names {list(self.bindings)}>"
