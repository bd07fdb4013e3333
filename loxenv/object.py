from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, Sequence

from loxenv.common import ArityMismatch, NotCallable, debug_print
from loxenv.environment import Scope

if TYPE_CHECKING:
    from loxenv.nodes import Stmt

BodyRunner = Callable[[Sequence["Stmt"], Scope], Any]


class ObjType(Enum):
    CLOSURE = auto()
    NATIVE = auto()


class Obj(ABC):
    __slots__ = ("objtype", "name")

    def __init__(self, objtype: ObjType, name: str):
        self.objtype: ObjType = objtype
        self.name = name

    @property
    @abstractmethod
    def arity(self) -> int:
        ...

    def __str__(self) -> str:
        return f"<fn {self.name}>"


class ObjClosure(Obj):
    __slots__ = ("parameters", "body", "scope")

    def __init__(self, name: str, parameters: Sequence[str], body: Sequence["Stmt"], scope: Scope):
        super().__init__(ObjType.CLOSURE, name)
        self.parameters: tuple[str, ...] = tuple(parameters)
        self.body: tuple["Stmt", ...] = tuple(body)
        self.scope = scope

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def __repr__(self) -> str:
        return f"<ObjClosure :name {self.name} :arity {self.arity}>"


class ObjNative(Obj):
    __slots__ = ("_arity", "function")

    def __init__(self, name: str, arity: int, function: Callable[..., Any]):
        super().__init__(ObjType.NATIVE, name)
        self._arity = arity
        self.function = function

    @property
    def arity(self) -> int:
        return self._arity

    def __str__(self) -> str:
        return f"<native fn {self.name}>"

    def __repr__(self) -> str:
        return f"<ObjNative :name {self.name} :arity {self.arity}>"


def make_closure(name: str, parameters: Sequence[str], body: Sequence["Stmt"], scope: Scope) -> ObjClosure:
    # the scope itself is held, never a copy of its bindings
    return ObjClosure(name, parameters, body, scope)


def invoke(callee: Any, arguments: Sequence[Any], run_body: BodyRunner) -> Any:
    """Call `callee` with `arguments`.

    A closure gets a fresh activation scope chained to the scope it captured,
    not to the caller's. Its parameters are declared there and `run_body`
    executes the body with the activation as the innermost scope.
    """
    if not isinstance(callee, Obj):
        raise NotCallable("can only call functions")

    if len(arguments) != callee.arity:
        raise ArityMismatch(callee.name, callee.arity, len(arguments))

    debug_print("call %r with %r", callee, list(arguments))

    match callee.objtype:
        case ObjType.NATIVE:
            assert isinstance(callee, ObjNative)
            return callee.function(*arguments)
        case ObjType.CLOSURE:
            assert isinstance(callee, ObjClosure)
            activation = Scope(callee.scope)
            for parameter, argument in zip(callee.parameters, arguments):
                activation.declare(parameter, argument)
            return run_body(callee.body, activation)
        case _:
            raise NotCallable(f"cannot call {callee.objtype}")
