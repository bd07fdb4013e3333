"""Per-iteration scoping for C-style `for` loops.

Every pass of a loop that declares its variable runs in its own scope. The
scopes are siblings under the loop's enclosing scope, so a closure formed in
one pass keeps the cell of that pass while later passes advance the variable
in cells of their own.
"""

from typing import Any, Callable

from loxenv.common import is_truthy
from loxenv.environment import Scope

ScopeHook = Callable[[Scope], Any]


def next_iteration(enclosing: Scope, current: Scope) -> Scope:
    """A sibling of `current` holding fresh cells with the current values."""
    following = Scope(enclosing)
    for name, cell in current.bindings.items():
        following.declare(name, cell.value, cell.const)
    return following


def run_for_loop(
    enclosing: Scope,
    initialize: ScopeHook | None,
    condition: ScopeHook | None,
    update: ScopeHook | None,
    body: ScopeHook,
) -> None:
    current = Scope(enclosing)
    if initialize is not None:
        initialize(current)

    # nothing declared means nothing to refresh between passes
    fresh = bool(current.bindings)

    while condition is None or is_truthy(condition(current)):
        body(current)

        if fresh:
            current = next_iteration(enclosing, current)
        if update is not None:
            update(current)
