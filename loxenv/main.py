import argparse
import logging
import sys
from pathlib import Path
from typing import IO

from loxenv.common import LoxRuntimeError, ParseError, logger
from loxenv.interpreter import Interpreter, InterpretResult
from loxenv.token import TokenizationError

EXIT_CODES = {
    InterpretResult.OK: 0,
    InterpretResult.COMPILE_ERROR: 65,
    InterpretResult.RUNTIME_ERROR: 70,
}
EXIT_NO_INPUT = 66


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loxenv", description="The lox interpreter")
    parser.add_argument("src", nargs="?", help="the .lox file that contains lox code")
    parser.add_argument("-v", "--verbose", action="store_true", help="trace tokens, scopes and calls")
    return parser


def run(interpreter: Interpreter, source: str) -> InterpretResult:
    try:
        return interpreter.interpret(source)
    except (TokenizationError, ParseError) as error:
        logger.debug("compile error", exc_info=True)
        print(error, file=sys.stderr)
        return InterpretResult.COMPILE_ERROR
    except LoxRuntimeError as error:
        logger.debug("runtime error", exc_info=True)
        print(error, file=sys.stderr)
        return InterpretResult.RUNTIME_ERROR


def run_file(path: Path) -> int:
    if not path.is_file():
        print(f"could not find src file: {path}", file=sys.stderr)
        return EXIT_NO_INPUT

    return EXIT_CODES[run(Interpreter(), path.read_text())]


def run_prompt(stdin: IO[str] | None = None) -> int:
    stdin = sys.stdin if stdin is None else stdin
    interpreter = Interpreter()
    chunk: list[str] = []

    print("The Lox Interpreter")
    while True:
        print("...  " if chunk else ">>>  ", end="", flush=True)
        line = stdin.readline()
        if not line:
            break

        if line.strip():
            chunk.append(line)
        elif chunk:
            # errors are reported and the session carries on
            run(interpreter, "".join(chunk))
            chunk.clear()

    if chunk:
        run(interpreter, "".join(chunk))
    print()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.src is None:
        return run_prompt()
    return run_file(Path(args.src))


if __name__ == "__main__":
    raise SystemExit(main())
