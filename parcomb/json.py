##
#  © 2024 Daniel W. Barowy
#
#  LICENSE: MIT
#
#  A JSON grammar (https://www.json.org/) written with the combinators.
#  Python has a standard library for JSON, so this is a worked example.
#
#  Usage: python -m parcomb.json [FILE] [--debug]
##
from __future__ import annotations
from typing import Any, Dict, List, Tuple
import argparse
import pprint
import re
import sys

from parcomb.combinator import (
    Parser,
    Failure,
    parse,
    alt,
    cause,
    pbetween,
    pfresult,
    pleft,
    pright,
    psepby0,
    pseq,
    recparser,
    transform,
)
from parcomb.text import plit, plit_sp, preg, pspaces, peof

class JSONSyntaxError(ValueError):
    def __init__(self, fail_pos: int, explanation: str) -> None :
        super().__init__(f"invalid JSON at position {fail_pos}: {explanation}")
        self.fail_pos = fail_pos
        self.explanation = explanation

NUMBER = r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?"
STRING = r'"(?:[^"\\\x00-\x1f]|\\["\\/bfnrt]|\\u[0-9a-fA-F]{4})*"'
ESCAPE = re.compile(r'\\(?:u([0-9a-fA-F]{4})|(.))')
ESCAPES = {'"': '"', '\\': '\\', '/': '/', 'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t'}

def to_number(s: str) -> int | float :
    """
    Integers stay integers; anything with a fraction or exponent is a float.
    """
    if any(c in s for c in ".eE"):
        return float(s)
    return int(s)

def unescape(s: str) -> str :
    """
    Decodes a quoted JSON string literal, including surrogate pairs.
    """
    def __lambda__(m: re.Match[str]) -> str :
        if m.group(1) is not None:
            return chr(int(m.group(1), 16))
        return ESCAPES[m.group(2)]
    decoded = ESCAPE.sub(__lambda__, s[1:-1])
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")

def pnull() -> Parser[None] :
    return pfresult(plit("null"), None)

def pbool() -> Parser[bool] :
    return pfresult(plit("true"), True) | pfresult(plit("false"), False)

def pnumber() -> Parser[int | float] :
    return cause(preg(NUMBER), "number") > to_number

def pstring() -> Parser[str] :
    return cause(preg(STRING), "string") > unescape

def pvalue() -> Parser[Any] :
    """
    Builds a parser for one JSON value, with any whitespace around it.
    Arrays and objects contain values, so the value rule is declared
    first with `recparser` and defined once its alternatives exist.
    """
    value, cell = recparser()

    array: Parser[List[Any]] = pbetween(
        plit_sp("["),
        psepby0(value, plit_sp(",")),
        plit_sp("]")
    )

    member: Parser[Tuple[str, Any]] = pseq(
        pleft(pright(pspaces(), pstring()), plit_sp(":")),
        value
    )
    obj: Parser[Dict[str, Any]] = transform(
        pbetween(
            plit_sp("{"),
            psepby0(member, plit_sp(",")),
            plit_sp("}")
        ),
        dict
    )

    cell.define(
        pbetween(
            pspaces(),
            alt(
                obj ^ "object",
                array ^ "array",
                pstring() ^ "string",
                pnumber() ^ "number",
                pbool() ^ "bool",
                pnull() ^ "null"
            ),
            pspaces()
        )
    )
    return value

def pdocument() -> Parser[Any] :
    """
    A JSON value followed by the end of the input.
    """
    return pleft(pvalue(), peof())

DOCUMENT = pdocument()

def loads(text: str, debug: bool = False) -> Any :
    """
    Parses a complete JSON document, raising `JSONSyntaxError` if it is
    malformed, has trailing content, or nests deeper than the Python stack
    allows.
    """
    try:
        o = parse(DOCUMENT, text, debug = debug)
    except RecursionError:
        raise JSONSyntaxError(0, "nesting too deep") from None
    if isinstance(o, Failure):
        raise JSONSyntaxError(o.fail_pos, o.explanation)
    return o.result

def parse_arguments(argv: List[str] | None = None) -> argparse.Namespace :
    parser = argparse.ArgumentParser(prog='python -m parcomb.json', description='Parse a JSON document and print the resulting Python value.')
    parser.add_argument('source_path', nargs='?', help='path to input file (default: standard input)')
    parser.add_argument('--debug', action='store_true', help='trace the parse on standard error')
    return parser.parse_args(argv)

def main(argv: List[str] | None = None) -> int :
    args = parse_arguments(argv)
    if args.source_path is None:
        text = sys.stdin.read()
    else:
        with open(args.source_path) as fh:
            text = fh.read()
    try:
        pprint.pprint(loads(text, debug = args.debug))
    except JSONSyntaxError as e:
        print(e, file = sys.stderr)
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())
