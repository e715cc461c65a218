##
#  © 2024 Daniel W. Barowy
#
#  LICENSE: MIT
#
#  The combinator engine: parser values, parse outcomes, and the
#  operators that compose them.
#
# Conventions:
# * Python does not have multi-line lambdas, so some combinators build their
#   parse function as a nested named function.  They are all called `__lambda__`.
# * Combinators start with the letter `p`, except for `alt`, `transform`
#   and `cause`, whose names read better as plain English.
# * Combinators are employed by function application, even when they have no
#   arguments, so the static type is always `Parser[_]` and the operator
#   overloads (e.g., `+`) work consistently.
# * Everything is statically typed; `Any` is used only when `Any` is the
#   correct type.
# * Combinators call their children's `parse_function` directly, which keeps
#   each level of a deeply nested input to a few Python stack frames.
##
from __future__ import annotations
from dataclasses import dataclass
from abc import ABC
from typing import Generic, TypeVar, Callable, Any, Tuple, List, Optional, Sequence, Union
import sys

P = TypeVar('P', covariant = True)
Q = TypeVar('Q', covariant = True)

T = TypeVar('T')
U = TypeVar('U')
V = TypeVar('V')

class InfiniteParsingLoop(Exception):
    """
    Raised when a repeated parser succeeds without consuming anything.
    """
    pass

class UndefinedParser(Exception):
    """
    Raised when a forward-declared parser is run before it is defined.
    """
    pass

class ParserRedefinition(Exception):
    """
    Raised when a `ParserCell` that already holds a parser is defined again.
    """
    pass

@dataclass(frozen=True)
class Input:
    """
    Represents the unconsumed suffix of a sequence (a string, or a
    tuple of tokens) that the parser needs for normal operation.
    """
    data: Sequence[Any]
    position: int = 0
    is_debug: bool = False

    def adv(self, n: int) -> Input :
        """
        Advance the parser cursor n elements forward.
        """
        return Input(self.data, self.position + n, self.is_debug)

    def is_eof(self) -> bool :
        """
        Returns True if and only if the Input's current position
        is at the end of the input sequence ("end of file").
        """
        return self.position >= len(self.data)

    @property
    def rest(self) -> Sequence[Any] :
        """
        The remaining, unconsumed suffix of the input.
        """
        return self.data[self.position:]

    def __len__(self) -> int :
        return max(len(self.data) - self.position, 0)

class Outcome(ABC, Generic[T]):
    """
    Represents the result of running a parser.
    """
    pass

@dataclass(frozen=True)
class Success(Outcome[T]):
    """
    Represents a successful parse.
    """
    result: T
    remaining: Input

    def __bool__(self) -> bool :
        return True

    def __str__(self):
        return f"Success(result = {self.result!r}, remaining = {self.remaining.rest!r})"

@dataclass(frozen=True)
class Failure(Outcome[Any]):
    """
    Represents a failed parse.
    """
    fail_pos: int
    explanation: str

    def __bool__(self) -> bool :
        return False

    def __str__(self):
        return f"Failure(fail_pos = {self.fail_pos}, explanation = {self.explanation})"

class Absent:
    """
    The result of `popt` when its parser fails.  Distinct from `None`,
    which is an ordinary parse result.
    """
    _instance: Optional[Absent] = None

    def __new__(cls) -> Absent :
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool :
        return False

    def __repr__(self) -> str :
        return "ABSENT"

ABSENT = Absent()

@dataclass(frozen=True)
class Parser(Generic[P]):
    parse_function: Callable[[Input], Outcome[P]]

    # overrides function application
    def __call__(self, input: Input) -> Outcome[P] :
        return self.parse_function(input)

    # overrides `+`
    def __add__(self, other: Parser[Q]) -> Parser[Tuple[P, Q]] :
        return pseq(self, other)

    # overrides `|`
    def __or__(self, other: Parser[P]) -> Parser[P] :
        """
        If the parser given as the left hand operand is unsuccessful,
        backtracks and tries the parser given as the right hand operand.
        Shorthand for `alt`.

        :param self: A parser.
        :type self: Parser[P]
        :param other: A parser.
        :type other: Parser[P]
        """
        return alt(self, other)

    # overrides `>`
    def __gt__(self, other: Callable[[P],Q]) -> Parser[Q] :
        """
        If the parser given as the left hand operand is successful,
        applies the function given as the right hand operand to the
        result of the parse, returning the result of the function.
        Shorthand for `transform`.

        :param self: A parser.
        :type self: Parser[P]
        :param other: A function from `P` to `Q`.
        :type other: Callable[[P],Q]
        """
        return transform(self, other)

    # overrides `^`
    def __xor__(self, other: str) -> Parser[P] :
        return pdebug(self, other)

    # overrides `<<`
    def __lshift__(self, other: Parser[Q]) -> Parser[P] :
        return pleft(self, other)

    # overrides `>>`
    def __rshift__(self, other: Parser[Q]) -> Parser[Q] :
        return pright(self, other)

    def map(self, f: Callable[[P],Q]) -> Parser[Q] :
        return transform(self, f)

    def opt(self) -> Parser[Union[P, Absent]] :
        return popt(self)

    def skip(self) -> Parser[None] :
        return pskip(self)

    def many0(self) -> Parser[List[P]] :
        return pmany0(self)

    def many1(self) -> Parser[List[P]] :
        return pmany1(self)

    def sepby0(self, sep: Parser[Any]) -> Parser[List[P]] :
        return psepby0(self, sep)

    def sepby1(self, sep: Parser[Any]) -> Parser[List[P]] :
        return psepby1(self, sep)

    def rc(self) -> Parser[P] :
        return prc(self)

def parse(p: Parser[T], input: Union[Input, Sequence[Any]], debug: bool = False) -> Outcome[T] :
    """
    Runs `p` against `input`.  A raw string or token sequence is wrapped in an
    `Input` positioned at its start.  Trailing input is left for the caller to
    check, e.g., with `peof`.
    :param p: A parser.
    :type p: Parser[T]
    :param input: An `Input`, or the sequence to parse.
    :type input: Input | Sequence[Any]
    :param debug: Turns on `pdebug` tracing for a raw sequence.
    :type debug: bool
    """
    if not isinstance(input, Input):
        input = Input(input, is_debug = debug)
    return p(input)

def presult(t: T) -> Parser[T] :
    """
    Consumes nothing from the given `Input`, returning `t`.
    :param t: A result.
    :type t: T
    """
    return Parser(lambda input: Success(t, input))

def pzero() -> Parser[Any] :
    """
    Consumes nothing from the given `Input` and fails.
    """
    return Parser(lambda input: Failure(input.position, "pzero"))

def pbind(p: Parser[T], f: Callable[[T],Parser[U]]) -> Parser[U] :
    """
    Runs `p` and then calls `f` on the result, yielding
    a new parser that is a function of the first parser's result,
    and runs that parser on the remaining input.
    :param p: A `Parser[T]`.
    :type p: Parser[T]
    :param f: A function that returns a `Parser[U]`.
    :type f: Callable[[T],Parser[U]]
    """
    run = p.parse_function
    def __lambda__(input: Input) -> Outcome[U]:
        o: Outcome[T] = run(input)
        match o:
            case Success(result = result1, remaining = i2):
                p2: Parser[U] = f(result1)
                return p2.parse_function(i2)
            case Failure():
                return o  # Propagate the failure
            case _:
                raise NotImplementedError # impossible
    return Parser(__lambda__)

def pseq(p1: Parser[T], p2: Parser[U]) -> Parser[Tuple[T,U]] :
    """
    Returns a parser that parses `p1` and then `p2` in sequence,
    returning a tuple of their results when successful.  The first
    failure is returned as-is.
    :param p1: A parser.
    :type p1: Parser[T]
    :param p2: A parser.
    :type p2: Parser[U]
    """
    run1, run2 = p1.parse_function, p2.parse_function
    def __lambda__(input: Input) -> Outcome[Tuple[T,U]] :
        o1: Outcome[T] = run1(input)
        match o1:
            case Success(result = r1, remaining = i1):
                o2: Outcome[U] = run2(i1)
                match o2:
                    case Success(result = r2, remaining = i2):
                        return Success((r1, r2), i2)
                    case Failure():
                        return o2
                    case _:
                        raise NotImplementedError # impossible
            case Failure():
                return o1
            case _:
                raise NotImplementedError # impossible
    return Parser(__lambda__)

def cause(p: Parser[T], explanation: str) -> Parser[T] :
    """
    Replaces the failure cause for the given parser with a different cause.
    :param p: A parser.
    :type p: Parser[T]
    :param explanation: An explanation string.
    :type explanation: str
    """
    run = p.parse_function
    def __lambda__(input: Input) -> Outcome[T] :
        o: Outcome[T] = run(input)
        match o:
            case Success():
                return o
            case Failure(fail_pos = pos):
                return Failure(pos, explanation)
            case _:
                raise NotImplementedError # impossible
    return Parser(__lambda__)

def alt(p1: Parser[T], p2: Parser[T], *ps: Parser[T]) -> Parser[T] :
    """
    Parses alternatives.  First tries `p1` and if that fails, tries `p2`
    on the same input, and so on for any further alternatives.
    Returns the first `Success`; if every alternative fails, returns the
    failure of the last one tried.  Note that all parser alternatives must
    return the same type.
    :param p1: A parser.
    :type p1: Parser[T]
    :param p2: A parser.
    :type p2: Parser[T]
    """
    runs = [p.parse_function for p in (p1, p2) + ps]
    def __lambda__(input: Input) -> Outcome[T] :
        for run in runs:
            o: Outcome[T] = run(input)
            match o:
                case Success():
                    return o
                case Failure():
                    continue
                case _:
                    raise NotImplementedError # impossible
        return o
    return Parser(__lambda__)

def transform(p: Parser[T], f: Callable[[T],U]) -> Parser[U] :
    """
    Runs `p`, and when it succeeds, runs a function `f` to transform
    the output of `p`.  `f` must not fail.
    :param p: A parser.
    :type p: Parser[T]
    :param f: A function that converts a `T` into a `U`
    :type f: Callable[[T],U]
    """
    run = p.parse_function
    def __lambda__(input: Input) -> Outcome[U] :
        o: Outcome[T] = run(input)
        match o:
            case Success(result = res, remaining = rem):
                return Success(f(res), rem)
            case Failure():
                return o
            case _:
                raise NotImplementedError # needed because mypy is stupid
    return Parser(__lambda__)

def pfresult(p: Parser[T], v: V) -> Parser[V] :
    """
    The parsing equivalent of a constant function. Returns `v` iff `p` succeeds.
    :param p: A parser.
    :type p: Parser[T]
    :param v: A value.
    :type v: V
    """
    return transform(p, lambda _: v)

def pmany0(p: Parser[T]) -> Parser[List[T]] :
    """
    Runs `p` zero or more times.  Always runs until `p` fails at
    least once, and never fails itself.  Raises `InfiniteParsingLoop`
    if `p` succeeds without consuming input.
    :param p: A parser.
    :type p: Parser[T]
    """
    run = p.parse_function
    def __lambda__(input: Input) -> Outcome[List[T]] :
        xs: List[T] = []
        while True:
            o: Outcome[T] = run(input)
            match o:
                case Success(result = res, remaining = rem):
                    if rem.position == input.position:
                        raise InfiniteParsingLoop("pmany parser loops infinitely!")
                    xs.append(res)
                    input = rem
                case Failure():
                    return Success(xs, input)
                case _:
                    raise NotImplementedError # impossible
    return Parser(__lambda__)

def pmany1(p: Parser[T]) -> Parser[List[T]] :
    """
    Runs `p` one or more times.  Always runs until `p` fails at
    least once.  Fails with `p`'s failure when `p` does not match even once.
    :param p: A parser.
    :type p: Parser[T]
    """
    return transform(pseq(p, pmany0(p)), lambda tup: [tup[0]] + tup[1])

def popt(p: Parser[T]) -> Parser[Union[T, Absent]] :
    """
    Runs `p`.  If it fails, succeeds anyway with `ABSENT` and the very
    same `Input` it was given.
    :param p: A parser.
    :type p: Parser[T]
    """
    run = p.parse_function
    def __lambda__(input: Input) -> Outcome[Union[T, Absent]] :
        o: Outcome[T] = run(input)
        match o:
            case Success():
                return o
            case Failure():
                return Success(ABSENT, input)
            case _:
                raise NotImplementedError # impossible
    return Parser(__lambda__)

def pskip(p: Parser[T]) -> Parser[None] :
    """
    Runs `p` and throws away its result, keeping what it consumed.
    :param p: A parser.
    :type p: Parser[T]
    """
    return pfresult(p, None)

def pleft(pl: Parser[T], pr: Parser[U]) -> Parser[T] :
    """
    Runs `pl` and `pr`, returning the result of `pl` iff both parsers succeed.
    :param pl: A parser.
    :type pl: Parser[T]
    :param pr: A parser.
    :type pr: Parser[U]
    """
    return pbetween(presult(None), pl, pr)

def pright(pl: Parser[T], pr: Parser[U]) -> Parser[U] :
    """
    Runs `pl` and `pr`, returning the result of `pr` iff both parsers succeed.
    :param pl: A parser.
    :type pl: Parser[T]
    :param pr: A parser.
    :type pr: Parser[U]
    """
    runl, runr = pl.parse_function, pr.parse_function
    def __lambda__(input: Input) -> Outcome[U] :
        o1: Outcome[T] = runl(input)
        match o1:
            case Success(remaining = i1):
                return runr(i1)
            case Failure():
                return o1
            case _:
                raise NotImplementedError # impossible
    return Parser(__lambda__)

def pbetween(popen: Parser[T], p: Parser[U], pclose: Parser[V]) -> Parser[U] :
    """
    Runs `popen`, then `p`, then `pclose`, returning the result of `p` iff
    all three parsers succeed.
    :param popen: A parser.
    :type popen: Parser[T]
    :param p: A parser.
    :type p: Parser[U]
    :param pclose: A parser.
    :type pclose: Parser[V]
    """
    runs = (popen.parse_function, p.parse_function, pclose.parse_function)
    def __lambda__(input: Input) -> Outcome[U] :
        results: List[Any] = []
        for run in runs:
            o: Outcome[Any] = run(input)
            match o:
                case Success(result = res, remaining = rem):
                    results.append(res)
                    input = rem
                case Failure():
                    return o
                case _:
                    raise NotImplementedError # impossible
        return Success(results[1], input)
    return Parser(__lambda__)

def psepby1(p: Parser[T], sep: Parser[Any]) -> Parser[List[T]] :
    """
    Parses one or more `p` separated by `sep`, returning the list of `p`
    results.  Stops before a separator that is not followed by a `p`.
    Fails only when the first `p` fails.
    :param p: An element parser.
    :type p: Parser[T]
    :param sep: A separator parser.
    :type sep: Parser[Any]
    """
    run, run_sep = p.parse_function, sep.parse_function
    def __lambda__(input: Input) -> Outcome[List[T]] :
        o: Outcome[T] = run(input)
        match o:
            case Success(result = res, remaining = rem):
                xs: List[T] = [res]
                input = rem
            case Failure():
                return o
            case _:
                raise NotImplementedError # impossible
        while True:
            o_sep: Outcome[Any] = run_sep(input)
            match o_sep:
                case Success(remaining = after_sep):
                    o = run(after_sep)
                case Failure():
                    return Success(xs, input)
                case _:
                    raise NotImplementedError # impossible
            match o:
                case Success(result = res, remaining = rem):
                    if rem.position == input.position:
                        raise InfiniteParsingLoop("psepby parser loops infinitely!")
                    xs.append(res)
                    input = rem
                case Failure():
                    return Success(xs, input)
                case _:
                    raise NotImplementedError # impossible
    return Parser(__lambda__)

def psepby0(p: Parser[T], sep: Parser[Any]) -> Parser[List[T]] :
    """
    Like `psepby1`, but an empty list is fine: when the first `p` fails,
    succeeds with `[]` and the `Input` it was given.
    :param p: An element parser.
    :type p: Parser[T]
    :param sep: A separator parser.
    :type sep: Parser[Any]
    """
    run = psepby1(p, sep).parse_function
    def __lambda__(input: Input) -> Outcome[List[T]] :
        o: Outcome[List[T]] = run(input)
        match o:
            case Success():
                return o
            case Failure():
                return Success([], input)
            case _:
                raise NotImplementedError # impossible
    return Parser(__lambda__)

def char_to_hex(c: Any) -> str :
    """
    Converts a given character into a hexadecimal representation of its
    code point.  Tokens that are not characters are shown with `repr`.
    """
    if isinstance(c, str) and len(c) == 1:
        return f"0x{ord(c):02x}"
    return repr(c)

def next_elem(input: Input) -> str :
    """
    Describes the next element of `input` for debug output.
    """
    if input.is_eof():
        return "EOF"
    return char_to_hex(input.data[input.position])

def pdebug(p: Parser[T], label: str) -> Parser[T] :
    """
    A debug parser.  Prints debug information for the given parser
    `p` to `sys.stderr` as a side effect, when the `Input` was created
    with `is_debug` set.  Otherwise `p` runs as-is.
    :param p: A parser.
    :type p: Parser[T]
    :param label: An informative tag that is printed alongside debug output.
    :type label: str
    """
    run = p.parse_function
    def __lambda__(input: Input) -> Outcome[T] :
        if not input.is_debug:
            return run(input)

        print(f'[attempting: {label} on "{input.rest}", next char: {next_elem(input)}]', file = sys.stderr)
        o: Outcome[T] = run(input)
        match o:
            case Success(remaining = rem):
                iconsumed = input.data[input.position:rem.position]
                print(f'[success: {label}, consumed: "{iconsumed}", remaining: "{rem.rest}", next char: {next_elem(rem)}]', file = sys.stderr)
            case Failure(explanation = rule):
                print(f'[failure at pos {input.position} in rule [{rule}]: {label}, remaining input: "{input.rest}", next char: {next_elem(input)}]', file = sys.stderr)
            case _:
                raise NotImplementedError # impossible
        return o
    return Parser(__lambda__)

class ParserCell(Generic[T]):
    """
    A shared reference cell holding a parser.  Every parser built from the
    same cell runs the same underlying parser.  A cell may be filled once,
    either when it is created or later with `define`, which is what lets a
    grammar rule mention itself before it is finished.
    """
    def __init__(self, parser: Optional[Parser[T]] = None) -> None :
        self._parser: Optional[Parser[T]] = parser

    @property
    def is_defined(self) -> bool :
        return self._parser is not None

    def define(self, parser: Parser[T]) -> None :
        if self._parser is not None:
            raise ParserRedefinition("parser cell is already defined")
        self._parser = parser

    def __call__(self, input: Input) -> Outcome[T] :
        if self._parser is None:
            raise UndefinedParser("recursive parser was used before being defined")
        return self._parser.parse_function(input)

def prc(p: Parser[T]) -> Parser[T] :
    """
    Wraps `p` in a shared `ParserCell`.  Copies of the returned parser all
    refer to the one cell, so `p` itself is never duplicated.
    :param p: A parser.
    :type p: Parser[T]
    """
    return Parser(ParserCell(p))

def recparser() -> Tuple[Parser[Any], ParserCell[Any]] :
    """
    Used to declare a parser before it is defined.  The primary use case is
    when defining recursive parsers, e.g., parsers of the form
    `e ::= ... e ...`. Returns a tuple containing a parser that calls the
    implementation stored in a `ParserCell`, and the cell itself, initially
    empty.  Supply the implementation with `cell.define(...)`.
    """
    cell: ParserCell[Any] = ParserCell()
    return Parser(cell), cell
