from pytest import raises

from loxenv.common import ConstAssignment, UndefinedVariable
from loxenv.environment import Scope
from loxenv.interpreter import Interpreter
from loxenv.loop import next_iteration, run_for_loop


def counting_loop(outer: Scope, limit: int, seen: list[Scope]) -> None:
    def initialize(scope: Scope) -> None:
        scope.declare("a", 1)

    def condition(scope: Scope) -> bool:
        return scope.get("a") <= limit

    def update(scope: Scope) -> None:
        scope.assign("a", scope.get("a") + 1)

    run_for_loop(outer, initialize, condition, update, seen.append)


def test_each_iteration_gets_its_own_cell():
    outer = Scope()
    seen: list[Scope] = []
    counting_loop(outer, 3, seen)

    assert [scope.get("a") for scope in seen] == [1, 2, 3]
    assert len({id(scope.lookup("a")) for scope in seen}) == 3


def test_iterations_are_siblings():
    outer = Scope()
    seen: list[Scope] = []
    counting_loop(outer, 3, seen)

    assert all(scope.parent is outer for scope in seen)
    assert "a" not in outer


def test_condition_false_runs_no_body():
    seen: list[Scope] = []
    counting_loop(Scope(), 0, seen)
    assert seen == []


def test_loop_without_declaration_shares_one_scope():
    outer = Scope()
    outer.declare("i", 0)
    seen: list[Scope] = []

    run_for_loop(
        outer,
        None,
        lambda scope: scope.get("i") < 3,
        lambda scope: scope.assign("i", scope.get("i") + 1),
        seen.append,
    )

    assert len(seen) == 3
    assert len({id(scope) for scope in seen}) == 1
    assert outer.get("i") == 3


def test_missing_condition_loops_until_the_body_leaves():
    class Stop(Exception):
        pass

    passes: list[int] = []

    def body(scope: Scope) -> None:
        passes.append(scope.get("a"))
        if len(passes) == 4:
            raise Stop

    with raises(Stop):
        run_for_loop(
            Scope(),
            lambda scope: scope.declare("a", 0),
            None,
            lambda scope: scope.assign("a", scope.get("a") + 1),
            body,
        )
    assert passes == [0, 1, 2, 3]


def test_next_iteration_copies_values_and_const():
    outer = Scope()
    current = Scope(outer)
    current.declare("a", 1)
    current.declare("b", 2, const=True)

    following = next_iteration(outer, current)

    assert following.parent is outer
    assert following.get("a") == 1
    assert following.lookup("a") is not current.lookup("a")
    assert following.lookup("b").const


def test_closures_capture_per_iteration(capsys):
    Interpreter().interpret(
        """
        var first;
        var second;
        var third;
        for (var i = 0; i < 3; i = i + 1) {
            fun show() { print i; }
            if (i == 0) first = show;
            if (i == 1) second = show;
            if (i == 2) third = show;
        }
        first();
        second();
        third();
        """
    )
    assert capsys.readouterr().out.splitlines() == ["0", "1", "2"]


def test_body_assignment_carries_into_next_iteration(capsys):
    Interpreter().interpret(
        """
        for (var i = 0; i < 5; i = i + 1) {
            print i;
            i = i + 1;
        }
        """
    )
    assert capsys.readouterr().out.splitlines() == ["0", "2", "4"]


def test_loop_variable_does_not_leak():
    interpreter = Interpreter()
    interpreter.interpret("""for (var i = 0; i < 1; i = i + 1) {}""")
    with raises(UndefinedVariable):
        interpreter.interpret("""print i;""")


def test_expression_initializer_updates_outer(capsys):
    Interpreter().interpret(
        """
        var i;
        for (i = 0; i < 3; i = i + 1) {}
        print i;
        """
    )
    assert capsys.readouterr().out == "3\n"


def test_const_loop_variable_cannot_advance():
    with raises(ConstAssignment):
        Interpreter().interpret("""for (const i = 0; i < 3; i = i + 1) {}""")


def test_while_body_blocks_are_fresh(capsys):
    Interpreter().interpret(
        """
        var i = 0;
        var first;
        while (i < 2) {
            var j = i;
            fun show() { print j; }
            if (first == nil) first = show;
            i = i + 1;
        }
        first();
        """
    )
    assert capsys.readouterr().out == "0\n"


def test_return_from_inside_loop(capsys):
    Interpreter().interpret(
        """
        fun find() {
            for (var i = 0; i < 10; i = i + 1) {
                if (i == 3) return i;
            }
            return nil;
        }
        print find();
        """
    )
    assert capsys.readouterr().out == "3\n"
