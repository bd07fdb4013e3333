from pytest import raises

from loxenv.common import ArityMismatch, NotCallable
from loxenv.environment import Scope
from loxenv.interpreter import Interpreter
from loxenv.object import ObjClosure, ObjNative, invoke, make_closure


def test_close_over_reassigned_local(capsys):
    Interpreter().interpret(
        """
        fun outer() {
            var local = "local";
            fun closure() {
                print local;
            }
            local = "local overwritten";
            return closure;
        }

        var closure = outer();
        closure();
        """
    )
    assert capsys.readouterr().out == "local overwritten\n"


def test_close_over_loop_variable(capsys):
    Interpreter().interpret(
        """
        var globalOne;
        var globalTwo;

        fun main() {
            for (var a = 1; a <= 2; a = a + 1) {
                fun closure() {
                    print a;
                }
                if (globalOne == nil) {
                    globalOne = closure;
                } else {
                    globalTwo = closure;
                }
            }
        }

        main();
        globalOne();
        globalTwo();
        """
    )
    assert capsys.readouterr().out.splitlines() == ["1", "2"]


def test_close_over_global(capsys):
    interpreter = Interpreter()
    interpreter.interpret(
        """
        var x = 5;
        fun five() {
            return x;
        }
        print five();
        """
    )
    interpreter.interpret("""x = 6; print five();""")
    assert capsys.readouterr().out.splitlines() == ["5", "6"]


def test_shared_cell_between_closures(capsys):
    Interpreter().interpret(
        """
        var get;
        var set;
        fun pair() {
            var value = "initial";
            fun getter() { return value; }
            fun setter(v) { value = v; }
            get = getter;
            set = setter;
        }
        pair();
        print get();
        set("updated");
        print get();
        """
    )
    assert capsys.readouterr().out.splitlines() == ["initial", "updated"]


def test_counter_keeps_state(capsys):
    Interpreter().interpret(
        """
        fun make_counter() {
            var count = 0;
            fun counter() {
                count = count + 1;
                return count;
            }
            return counter;
        }
        var a = make_counter();
        var b = make_counter();
        print a();
        print a();
        print b();
        """
    )
    assert capsys.readouterr().out.splitlines() == ["1", "2", "1"]


def test_activations_are_independent(capsys):
    Interpreter().interpret(
        """
        fun make(n) {
            fun get() { return n; }
            return get;
        }
        var one = make(1);
        var two = make(2);
        print one();
        print two();
        print one();
        """
    )
    assert capsys.readouterr().out.splitlines() == ["1", "2", "1"]


def test_redeclaration_is_seen_by_name(capsys):
    Interpreter().interpret(
        """
        var x = "first";
        fun show() { print x; }
        var x = "second";
        show();
        """
    )
    assert capsys.readouterr().out == "second\n"


def test_activation_is_chained_to_definition_not_caller(capsys):
    Interpreter().interpret(
        """
        var name = "global";
        fun show() { print name; }
        fun caller() {
            var name = "caller";
            show();
        }
        caller();
        """
    )
    assert capsys.readouterr().out == "global\n"


def test_recursion(capsys):
    Interpreter().interpret(
        """
        fun fib(n) {
            if (n < 2) return n;
            return fib(n - 1) + fib(n - 2);
        }
        print fib(10);
        """
    )
    assert capsys.readouterr().out == "55\n"


def test_arity_mismatch():
    with raises(ArityMismatch) as excinfo:
        Interpreter().interpret(
            """
            fun f(a) {}
            f(1, 2);
            """
        )
    assert excinfo.value.expected == 1
    assert excinfo.value.got == 2
    assert excinfo.value.line == 3


def test_invoke_binds_parameters_in_a_fresh_activation():
    captured = Scope()
    captured.declare("outer", "kept")
    closure = make_closure("f", ["a", "b"], [], captured)
    activations: list[Scope] = []

    def run_body(body, activation):
        activations.append(activation)
        return activation.get("a") + activation.get("b")

    assert invoke(closure, [1, 2], run_body) == 3
    assert invoke(closure, [3, 4], run_body) == 7

    first, second = activations
    assert first is not second
    assert first.parent is captured
    assert first.get("a") == 1
    assert first.get("outer") == "kept"
    assert "a" not in captured


def test_make_closure_holds_the_scope():
    scope = Scope()
    closure = make_closure("f", [], [], scope)
    scope.declare("later", 1)

    assert isinstance(closure, ObjClosure)
    assert closure.scope is scope
    assert closure.scope.get("later") == 1
    assert str(closure) == "<fn f>"


def test_invoke_native():
    native = ObjNative("double", 1, lambda x: x * 2)

    assert invoke(native, [21], lambda body, scope: None) == 42
    with raises(ArityMismatch):
        invoke(native, [], lambda body, scope: None)


def test_invoke_not_callable():
    with raises(NotCallable):
        invoke("text", [], lambda body, scope: None)
