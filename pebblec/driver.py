import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional
from .lexer import Lexer, LexError
from .parser import Parser, ParseError
from .resolve import check_declarations, ResolveError
from .codegen import CodeGen
from .bytecode import format_listing
from pebblevm.vm import PebbleVM, VMError, DEFAULT_STACK_LIMIT


def compile_source(source: str, strict: bool = False) -> bytes:
    """Lex, parse and compile Pebble source into a bytecode program."""
    program = Parser(Lexer(source)).parse()
    if strict:
        check_declarations(program)
    return CodeGen().generate(program)


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {text}")
    return value


def main(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(prog="pebble", description="Pebble compiler/executor")
    ap.add_argument("source", type=Path, help="Source .pb file (or compiled program with --bytecode)")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("-o", "--out", type=Path, help="Write compiled bytecode here instead of running it")
    mode.add_argument("--disasm", action="store_true", help="Print a listing of the compiled program instead of running it")
    ap.add_argument("--bytecode", action="store_true", help="Treat SOURCE as an already compiled program")
    ap.add_argument("--stack-size", type=_positive_int, default=DEFAULT_STACK_LIMIT,
                    help=f"Operand stack capacity (default {DEFAULT_STACK_LIMIT})")
    ap.add_argument("--strict", action="store_true", help="Reject variables used before their 'let'")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log compiler and VM debug output to stderr")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if args.bytecode:
            code = args.source.read_bytes()
        else:
            code = compile_source(args.source.read_text(encoding="utf-8"), strict=args.strict)
    except (LexError, ParseError) as e:
        print(f"Syntax error at {args.source}:{e.line}:{e.col}: {e}", file=sys.stderr)
        sys.exit(1)
    except ResolveError as e:
        print(f"Semantic error in {args.source}: {e}", file=sys.stderr)
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Cannot read {args.source}: {e}", file=sys.stderr)
        sys.exit(1)

    if args.disasm:
        try:
            print(format_listing(code))
        except ValueError as e:
            print(f"Malformed program {args.source}: {e}", file=sys.stderr)
            sys.exit(1)
        return

    if args.out is not None:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_bytes(code)
        print(f"Wrote {args.out}")
        return

    vm = PebbleVM(code, stack_limit=args.stack_size)
    try:
        vm.run()
    except VMError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
