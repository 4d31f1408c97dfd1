"""
Splitter behavioral tests (tokenizer, argument splitter, split_argument).

Scope
- Validate separator handling at depth zero and enclosure preservation.
- Validate nesting, quote atomicity, escapes and unbalanced-input faults.
- Validate post-processing options (trim, empties, quote unescaping).
- Validate split_argument field-count rules.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from conch import ParseError, InvalidArgumentError
from conch.splitter import (
    Enclosure,
    Splitter,
    PARENTHESIS,
    DOUBLE_QUOTES,
    tokenizer,
    argument_splitter,
    split_argument,
)


class TestTokenizer(TestCase):
    """Behavioral tests for the command-line tokenizer."""

    def setUp(self):
        self.tokenizer = tokenizer()

    def testSplitsOnSpaces(self):
        self.assertEqual(self.tokenizer.split("help command=ping"), ["help", "command=ping"])

    def testEmptyLineYieldsNoTokens(self):
        self.assertEqual(self.tokenizer.split(""), [])
        self.assertEqual(self.tokenizer.split("    "), [])

    def testLeadingTrailingAndRepeatedSpacesDropped(self):
        self.assertEqual(self.tokenizer.split("  a   b  "), ["a", "b"])

    def testDoubleQuotesKeepSpacesAndQuotes(self):
        self.assertEqual(self.tokenizer.split('say "hello world"'), ["say", '"hello world"'])

    def testSingleQuotesKeepSpacesAndQuotes(self):
        self.assertEqual(self.tokenizer.split("say msg='a b c'"), ["say", "msg='a b c'"])

    def testBracketsKeepSpaces(self):
        tokens = self.tokenizer.split("run args=(a b) list=[1, 2] obj={x: y}")
        self.assertEqual(tokens, ["run", "args=(a b)", "list=[1, 2]", "obj={x: y}"])

    def testNestedEnclosures(self):
        tokens = self.tokenizer.split('x=({a [b "c )"]}) y')
        self.assertEqual(tokens, ['x=({a [b "c )"]})', "y"])

    def testEscapedQuoteDoesNotClose(self):
        tokens = self.tokenizer.split(r'say "a \" b" next')
        self.assertEqual(tokens, ["say", r'"a \" b"', "next"])

    def testBracketsIgnoredInsideQuotes(self):
        self.assertEqual(self.tokenizer.split('say "(" x'), ["say", '"("', "x"])

    def testUnclosedQuoteRaises(self):
        with self.assertRaises(ParseError):
            self.tokenizer.split('say "hello')

    def testUnclosedBracketRaises(self):
        with self.assertRaises(ParseError):
            self.tokenizer.split("run (a b")

    def testUnopenedBracketRaises(self):
        with self.assertRaises(ParseError):
            self.tokenizer.split("run a)")

    def testMismatchedBracketRaises(self):
        with self.assertRaises(ParseError):
            self.tokenizer.split("run (a]")

    def testRejoinedTokensReparseIdentically(self):
        for line in (
            'set value="a b"  when=(x y)',
            "  one  two=[3, 4]   five ",
            r"say 'it\'s here' ok",
        ):
            tokens = self.tokenizer.split(line)
            self.assertEqual(self.tokenizer.split(" ".join(tokens)), tokens)


class TestArgumentSplitter(TestCase):
    """Behavioral tests for split_argument over the argument splitter."""

    def setUp(self):
        self.splitter = argument_splitter()

    def testKeyValue(self):
        self.assertEqual(split_argument(self.splitter, "a=b"), ("a", "b"))

    def testBareValue(self):
        self.assertEqual(split_argument(self.splitter, "bare"), (None, "bare"))

    def testTwoSeparatorsRaise(self):
        with self.assertRaises(InvalidArgumentError):
            split_argument(self.splitter, "a=b=c")

    def testInvalidArgumentIsParseError(self):
        with self.assertRaises(ParseError) as context:
            split_argument(self.splitter, "a=b=c")
        self.assertEqual(str(context.exception), "invalid argument: a=b=c")

    def testQuotedSeparatorIsNotSplit(self):
        self.assertEqual(split_argument(self.splitter, 'q="x=y"'), ("q", "x=y"))

    def testBracketedSeparatorIsNotSplit(self):
        self.assertEqual(split_argument(self.splitter, "q=(x=y)"), ("q", "(x=y)"))

    def testQuotesAreUnescaped(self):
        self.assertEqual(split_argument(self.splitter, r'"a\"b"'), (None, 'a"b'))
        self.assertEqual(split_argument(self.splitter, r"k='it\'s'"), ("k", "it's"))

    def testPartiallyQuotedValueKeepsQuotes(self):
        self.assertEqual(split_argument(self.splitter, 'k="a"b'), ("k", '"a"b'))

    def testTrailingSeparatorLeavesBareKey(self):
        self.assertEqual(split_argument(self.splitter, "line="), (None, "line"))

    def testLoneSeparatorRaises(self):
        with self.assertRaises(InvalidArgumentError):
            split_argument(self.splitter, "=")

    def testUnbalancedValueRaises(self):
        with self.assertRaises(ParseError):
            split_argument(self.splitter, 'k="open')


class TestSplitterOptions(TestCase):
    """Behavioral tests for Splitter construction and options."""

    def testSeparatorMustBeSingleCharacter(self):
        with self.assertRaises(TypeError):
            Splitter("::")

    def testSeparatorCannotBeEnclosureCharacter(self):
        with self.assertRaises(ValueError):
            Splitter("(", PARENTHESIS)

    def testDuplicateEnclosureRejected(self):
        with self.assertRaises(ValueError):
            Splitter(",", PARENTHESIS, Enclosure("(", "]"))

    def testWithoutOptionsEmptiesAreKept(self):
        self.assertEqual(Splitter(",").split(",a,,b,"), ["", "a", "", "b", ""])

    def testIgnoreEmptyFirstAndLastOnly(self):
        splitter = Splitter(",", ignore_empty_first=True, ignore_empty_last=True)
        self.assertEqual(splitter.split(",a,,b,"), ["a", "", "b"])

    def testTrimSpaces(self):
        self.assertEqual(Splitter(",", trim_spaces=True).split(" a , b "), ["a", "b"])

    def testEnclosuresOnlyApplyWhenDeclared(self):
        self.assertEqual(Splitter(" ").split('"a b"'), ['"a', 'b"'])
        self.assertEqual(Splitter(" ", DOUBLE_QUOTES).split('"a b"'), ['"a b"'])


if __name__ == "__main__":
    unittest.main()
