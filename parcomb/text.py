##
#  © 2024 Daniel W. Barowy
#
#  LICENSE: MIT
#
#  Terminal parsers: the parsers that look at the input directly rather
#  than through other parsers.  `plit`, `pitem`, `psat` and `peof` work on any
#  sequence, including token tuples and lists; `preg` and friends need a `str`.
##
from __future__ import annotations
from typing import Callable, Any, Sequence
import re

from parcomb.combinator import (
    Parser,
    Input,
    Outcome,
    Success,
    Failure,
    cause,
    pleft,
    pright,
)

def pitem() -> Parser[Any] :
    """
    Consumes a single element (a character or a token) from the given `Input`.
    """
    def __lambda__(input: Input) -> Outcome[Any] :
        if input.is_eof():
            return Failure(input.position, "pitem")
        return Success(input.data[input.position], input.adv(1))
    return Parser(__lambda__)

def psat(f: Callable[[Any], bool]) -> Parser[Any] :
    """
    Checks whether the element at the current position matches
    a predicate.  Useful for checking whether a character matches
    a set of characters.
    :param f: A predicate over a single element.
    :type f: Callable[[Any], bool]
    """
    def __lambda__(input: Input) -> Outcome[Any] :
        if input.is_eof() or not f(input.data[input.position]):
            return Failure(input.position, "psat")
        return Success(input.data[input.position], input.adv(1))
    return Parser(__lambda__)

def plit(s: Sequence[Any]) -> Parser[Sequence[Any]] :
    """
    Parses the given literal: a string, or a tuple or list of tokens when
    the input is a token sequence.  Token literals match either kind of token
    sequence.  Consumes exactly `len(s)` elements.
    :param s: A literal.
    :type s: Sequence[Any]
    """
    n = len(s)
    key = s if isinstance(s, str) else tuple(s)
    def __lambda__(input: Input) -> Outcome[Sequence[Any]] :
        window = input.data[input.position:input.position + n]
        if not isinstance(window, str):
            window = tuple(window)
        if window == key:
            return Success(s, input.adv(n))
        return Failure(input.position, f"plit({s!r})")
    return Parser(__lambda__)

def preg(pattern: str, flags: int = 0) -> Parser[str] :
    """
    Parses whatever the regular expression `pattern` matches at the start of
    the remaining input.  The remaining input is all the pattern sees, so `^`
    and `\\b` treat the current position as the start of the text.  The
    pattern is compiled once, here.
    :param pattern: A regular expression string.
    :type pattern: str
    :param flags: `re` module flags.
    :type flags: int
    """
    rgx = re.compile(pattern, flags)
    def __lambda__(input: Input) -> Outcome[str] :
        m = rgx.match(input.rest)
        if m is None:
            return Failure(input.position, f"preg({pattern})")
        return Success(m.group(0), input.adv(m.end()))
    return Parser(__lambda__)

def pspaces() -> Parser[str] :
    """
    Consumes zero or more whitespace characters.  Never fails.
    """
    return cause(
        preg(r"\s*"),
        "pspaces"
    )

def plit_sp(s: str) -> Parser[Sequence[Any]] :
    """
    Parses the string literal `s`, along with any whitespace around it.
    :param s: A string literal.
    :type s: str
    """
    return pleft(pright(pspaces(), plit(s)), pspaces())

def peof() -> Parser[bool] :
    """
    Consumes the end of file.  Run this to ensure that the entire
    input has been parsed.
    """
    def __lambda__(input: Input) -> Outcome[bool] :
        if input.is_eof():
            return Success(True, input)
        return Failure(input.position, "peof")
    return Parser(__lambda__)
