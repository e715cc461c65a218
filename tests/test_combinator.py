import unittest
import copy
import io
from unittest import mock
from contextlib import redirect_stderr

from parcomb import combinator

from parcomb.combinator import (
    InfiniteParsingLoop,
    UndefinedParser,
    ParserRedefinition,
    Input,
    Success,
    Failure,
    ABSENT,
    parse,
    presult,
    pzero,
    pbind,
    pseq,
    cause,
    alt,
    transform,
    pfresult,
    pmany0,
    pmany1,
    popt,
    pskip,
    pleft,
    pright,
    pbetween,
    psepby1,
    psepby0,
    pdebug,
    prc,
    recparser,
)
from parcomb.text import plit, preg, psat, pspaces


class TestSequencing(unittest.TestCase):
    def test_pseq_keeps_both(self):
        o = parse(pseq(plit("ab"), plit("cd")), "abcde")
        self.assertEqual(("ab", "cd"), o.result)
        self.assertEqual("e", o.remaining.rest)

    def test_pseq_propagates_first_failure(self):
        self.assertEqual(Failure(2, "plit('cd')"), parse(plit("ab") + plit("cd"), "abxx"))
        self.assertEqual(Failure(0, "plit('ab')"), parse(plit("ab") + plit("cd"), "xxcd"))

    def test_pleft(self):
        p = pleft(plit("abc"), plit("def"))
        o = parse(p, "abcdefg")
        self.assertEqual(("abc", "g"), (o.result, o.remaining.rest))
        self.assertFalse(parse(p, "xxxx"))
        self.assertFalse(parse(p, "abcxxx"))

    def test_pright(self):
        p = pright(plit("abc"), plit("def"))
        o = parse(p, "abcdefg")
        self.assertEqual(("def", "g"), (o.result, o.remaining.rest))
        self.assertFalse(parse(p, "xxxx"))

    def test_pbetween(self):
        o = parse(pbetween(plit("("), plit("x"), plit(")")), "(x)!")
        self.assertEqual(("x", "!"), (o.result, o.remaining.rest))

    def test_pbind(self):
        p = pbind(preg(r"\d"), lambda n: plit("x" * int(n)))
        o = parse(p, "3xxxy")
        self.assertEqual(("xxx", "y"), (o.result, o.remaining.rest))
        self.assertFalse(parse(p, "3xxy"))

    def test_operators(self):
        a, b = plit("a"), plit("b")
        for p, expected in [
            (a + b, ("a", "b")),
            (a << b, "a"),
            (a >> b, "b"),
            ((a + b) > (lambda tup: tup[0] + tup[1]), "ab"),
            (b | a, "a"),
        ]:
            with self.subTest(expected=expected):
                o = parse(p, "abc")
                self.assertEqual(expected, o.result)

    def test_remaining_is_a_suffix(self):
        inp = Input("hello world")
        o = (plit("hello") << pspaces())(inp)
        self.assertEqual(len(inp) - 6, len(o.remaining))
        self.assertEqual("world", o.remaining.rest)


class TestChoice(unittest.TestCase):
    def test_failing_first_alternative_is_transparent(self):
        p = plit("abc")
        for text in ["abcd", "xyz", ""]:
            with self.subTest(text=text):
                self.assertEqual(parse(p, text), parse(alt(pzero(), p), text))

    def test_first_match_wins(self):
        p = alt(pfresult(plit("a"), 1), pfresult(plit("ab"), 2))
        o = parse(p, "abc")
        self.assertEqual((1, "bc"), (o.result, o.remaining.rest))

    def test_second_alternative_starts_from_original_input(self):
        p = alt(plit("ab") + plit("x"), plit("abc") > (lambda s: (s, "")))
        o = parse(p, "abc")
        self.assertEqual(("abc", ""), o.result)
        self.assertEqual("", o.remaining.rest)

    def test_last_failure_wins(self):
        self.assertEqual(Failure(0, "plit('y')"), parse(alt(plit("x"), plit("y")), "z"))

    def test_many_alternatives(self):
        p = alt(plit("x"), plit("y"), plit("z"))
        self.assertEqual("z", parse(p, "z").result)
        self.assertEqual(Failure(0, "plit('z')"), parse(p, "w"))


class TestRepetition(unittest.TestCase):
    def test_pmany0_without_matches(self):
        inp = Input("bbb")
        o = pmany0(plit("a"))(inp)
        self.assertEqual([], o.result)
        self.assertIs(inp, o.remaining)

    def test_pmany0_is_greedy(self):
        o = parse(pmany0(plit("a")), "aaab")
        self.assertEqual((["a", "a", "a"], "b"), (o.result, o.remaining.rest))

    def test_pmany0_never_gives_back(self):
        p = pmany0(plit("a")) + plit("a")
        self.assertFalse(parse(p, "aaa"))

    def test_pmany1(self):
        o = parse(pmany1(plit("a")), "aab")
        self.assertEqual((["a", "a"], "b"), (o.result, o.remaining.rest))
        self.assertEqual(Failure(0, "plit('a')"), parse(pmany1(plit("a")), "bbb"))

    def test_non_consuming_repetition_is_an_error(self):
        with self.assertRaises(InfiniteParsingLoop):
            parse(pmany0(pspaces()), "abc")

    def test_methods(self):
        o = parse(plit("a").many1().map(len), "aaaa")
        self.assertEqual(4, o.result)
        self.assertEqual([], parse(plit("a").many0(), "b").result)


class TestOptionality(unittest.TestCase):
    def test_popt_success(self):
        o = parse(popt(plit("abc")), "abcd")
        self.assertEqual(("abc", "d"), (o.result, o.remaining.rest))

    def test_popt_failure_keeps_the_same_input(self):
        inp = Input("xxxx")
        o = popt(plit("abc"))(inp)
        self.assertIs(ABSENT, o.result)
        self.assertIs(inp, o.remaining)

    def test_absent_is_not_none(self):
        o = parse(plit("null").opt(), "nil")
        self.assertIsNot(None, o.result)
        self.assertFalse(o.result)
        self.assertEqual("ABSENT", repr(o.result))

    def test_pskip(self):
        o = parse(pskip(plit("abc")), "abcd")
        self.assertEqual((None, "d"), (o.result, o.remaining.rest))
        self.assertEqual(Failure(0, "plit('abc')"), parse(plit("abc").skip(), "xxxx"))


class TestSeparatedLists(unittest.TestCase):
    def test_psepby1(self):
        o = parse(psepby1(plit("a"), plit(",")), "a,a,a)))")
        self.assertEqual((["a", "a", "a"], ")))"), (o.result, o.remaining.rest))

    def test_psepby1_needs_one_element(self):
        self.assertEqual(Failure(0, "plit('a')"), parse(psepby1(plit("a"), plit(",")), "b)))"))

    def test_psepby0_accepts_no_elements(self):
        inp = Input("b)))")
        o = psepby0(plit("a"), plit(","))(inp)
        self.assertEqual([], o.result)
        self.assertIs(inp, o.remaining)
        self.assertEqual("b)))", o.remaining.rest)

    def test_stops_before_a_dangling_separator(self):
        o = parse(plit("a").sepby1(plit(",")), "a,a,)")
        self.assertEqual((["a", "a"], ",)"), (o.result, o.remaining.rest))

    def test_element_list_built_once(self):
        with mock.patch.object(combinator, 'psepby1', wraps=combinator.psepby1) as spy:
            p = psepby0(plit("a"), plit(","))
            for text in ["x", "a", "a,a,a"]:
                parse(p, text)
        self.assertEqual(1, spy.call_count)

    def test_non_consuming_separated_list_is_an_error(self):
        with self.assertRaises(InfiniteParsingLoop):
            parse(psepby1(pspaces(), pspaces()), "abc")

    def test_results_are_not_shared_between_runs(self):
        p = psepby0(plit("a"), plit(","))
        first = parse(p, "x").result
        first.append("junk")
        self.assertEqual([], parse(p, "x").result)

    def test_token_sequence(self):
        tokens = ("LBRACK", "NUM", "COMMA", "NUM", "RBRACK")
        num = psat(lambda t: t == "NUM")
        p = pbetween(plit(("LBRACK",)), psepby0(num, plit(("COMMA",))), plit(("RBRACK",)))
        o = parse(p, tokens)
        self.assertEqual(["NUM", "NUM"], o.result)
        self.assertTrue(o.remaining.is_eof())


class TestRecursion(unittest.TestCase):
    def test_recparser(self):
        nesting, cell = recparser()
        cell.define(alt(pbetween(plit("("), nesting, plit(")")) > (lambda d: d + 1), presult(0)))
        for text, depth in [("", 0), ("()", 1), ("((()))", 3)]:
            with self.subTest(text=text):
                o = parse(nesting, text)
                self.assertEqual(depth, o.result)
                self.assertTrue(o.remaining.is_eof())

    def test_deep_recursion(self):
        nesting, cell = recparser()
        cell.define(alt(pbetween(plit("("), nesting, plit(")")) > (lambda d: d + 1), presult(0)))
        o = parse(nesting, "(" * 150 + ")" * 150)
        self.assertEqual(150, o.result)
        self.assertTrue(o.remaining.is_eof())

    def test_undefined(self):
        p, cell = recparser()
        self.assertFalse(cell.is_defined)
        with self.assertRaises(UndefinedParser):
            parse(p, "x")

    def test_redefinition(self):
        p, cell = recparser()
        cell.define(plit("x"))
        with self.assertRaises(ParserRedefinition):
            cell.define(plit("y"))

    def test_prc_shares_the_parser(self):
        shared = prc(plit("a"))
        clone = copy.copy(shared)
        self.assertIs(shared.parse_function, clone.parse_function)
        self.assertEqual(parse(shared, "ab"), parse(clone, "ab"))
        self.assertEqual(["a", "a"], parse(plit("a").rc().many0(), "aab").result)


class TestMisc(unittest.TestCase):
    def test_transform_numbers(self):
        p = transform(preg(r"0|([123456789]\d*)"), int)
        for text, value, rest in [
            ("0", 0, ""),
            ("8", 8, ""),
            ("1234590", 1234590, ""),
            ("01", 0, "1"),
        ]:
            with self.subTest(text=text):
                o = parse(p, text)
                self.assertEqual((value, rest), (o.result, o.remaining.rest))

    def test_cause(self):
        self.assertEqual(Failure(0, "digit"), parse(cause(preg(r"\d"), "digit"), "x"))
        self.assertEqual("1", parse(cause(preg(r"\d"), "digit"), "1").result)

    def test_outcome_truthiness(self):
        self.assertTrue(parse(presult(None), ""))
        self.assertFalse(parse(pzero(), ""))
        self.assertIsInstance(parse(presult(1), "x"), Success)

    def test_pdebug_is_silent_by_default(self):
        err = io.StringIO()
        with redirect_stderr(err):
            o = parse(pdebug(plit("a"), "A"), "ab")
        self.assertEqual("a", o.result)
        self.assertEqual("", err.getvalue())

    def test_pdebug_traces(self):
        err = io.StringIO()
        with redirect_stderr(err):
            parse((plit("a") ^ "A") + (plit("c") ^ "C"), "ab", debug = True)
        trace = err.getvalue()
        self.assertIn('[attempting: A on "ab", next char: 0x61]', trace)
        self.assertIn('[success: A, consumed: "a", remaining: "b", next char: 0x62]', trace)
        self.assertIn("[failure at pos 1 in rule [plit('c')]: C", trace)


if __name__ == '__main__':
    unittest.main()
