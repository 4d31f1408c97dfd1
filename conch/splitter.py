r"""
Conch splitters: enclosure-aware string splitting.

What this module provides
- Enclosure: a delimiter pair inside which the separator is ignored.
  • Brackets (parentheses, square brackets, curly brackets) nest and may contain quotes.
  • Quotes (double, single) are atomic: nothing inside them opens or closes, and a
    backslash escapes the next character.
- Splitter: splits a string on a single separator character at depth zero, keeping the
  enclosure characters in the resulting parts, with post-processing options.
- tokenizer() / argument_splitter(): the two splitters every shell session owns.
- split_argument(): turns one token into a (key, value) pair.

Failures
- A closing bracket that does not match the innermost open enclosure, and any
  enclosure still open at the end of input, raise ParseError with the position.

Examples
    >>> tokenizer().split('set value="a b" when=(x y)')
    ['set', 'value="a b"', 'when=(x y)']
    >>> split_argument(argument_splitter(), r'name="a\"b"')
    ('name', 'a"b')
"""
from collections import namedtuple

from .faults import ParseError, InvalidArgumentError

Enclosure = namedtuple("Enclosure", ("open", "close", "quote", "escape"), defaults=(False, None))

PARENTHESIS = Enclosure("(", ")")
SQUARE_BRACKETS = Enclosure("[", "]")
CURLY_BRACKETS = Enclosure("{", "}")
DOUBLE_QUOTES = Enclosure('"', '"', True, "\\")
SINGLE_QUOTES = Enclosure("'", "'", True, "\\")

ENCLOSURES = (PARENTHESIS, SQUARE_BRACKETS, CURLY_BRACKETS, DOUBLE_QUOTES, SINGLE_QUOTES)


class Splitter:
    """
    Split strings on a separator, honoring nested enclosures.

    Options
    - trim_spaces: strip surrounding whitespace from every part.
    - ignore_empty_first / ignore_empty_last: drop an empty first / last part.
    - ignore_empties: drop every empty part.
    - unescape_quotes: a part wrapped in exactly one quote enclosure loses that pair
      and the backslash escapes of its quote and escape characters.

    Options apply in that order: trim, unescape, then the empty-part filters.
    """

    def __init__(
            self,
            separator,
            /,
            *enclosures,
            trim_spaces=False,
            ignore_empty_first=False,
            ignore_empty_last=False,
            ignore_empties=False,
            unescape_quotes=False,
    ):
        if not isinstance(separator, str) or len(separator) != 1:
            raise TypeError("splitter separator must be a single character")
        openers = {}
        closers = {}
        for enclosure in enclosures:
            if not isinstance(enclosure, Enclosure):
                raise TypeError("splitter enclosures must be Enclosure instances")
            if separator in (enclosure.open, enclosure.close):
                raise ValueError(f"splitter separator {separator!r} cannot be an enclosure character")
            if enclosure.open in openers:
                raise ValueError(f"splitter enclosure {enclosure.open!r} is declared twice")
            openers[enclosure.open] = enclosure
            if not enclosure.quote:
                closers[enclosure.close] = enclosure
        self._separator = separator
        self._enclosures = tuple(enclosures)
        self._openers = openers
        self._closers = closers
        self._trim_spaces = trim_spaces
        self._ignore_empty_first = ignore_empty_first
        self._ignore_empty_last = ignore_empty_last
        self._ignore_empties = ignore_empties
        self._unescape_quotes = unescape_quotes

    @property
    def separator(self):
        return self._separator

    @property
    def enclosures(self):
        return self._enclosures

    def __repr__(self):
        return f"{type(self).__name__}({self._separator!r}, {len(self._enclosures)} enclosures)"

    def split(self, text, /):
        if not isinstance(text, str):
            raise TypeError("split() argument must be a string")

        parts = []
        stack = []  # (enclosure, position) pairs, innermost last
        start = 0
        index = 0

        while index < len(text):
            char = text[index]
            if stack and stack[-1][0].quote:
                # Inside quotes only the escape and the matching quote matter
                enclosure = stack[-1][0]
                if enclosure.escape is not None and char == enclosure.escape:
                    index += 2
                    continue
                if char == enclosure.close:
                    stack.pop()
            elif char in self._openers:
                stack.append((self._openers[char], index))
            elif char in self._closers:
                if not stack or stack[-1][0].close != char:
                    raise ParseError(f"unopened {char!r} at position {index} in {text!r}")
                stack.pop()
            elif char == self._separator and not stack:
                parts.append(text[start:index])
                start = index + 1
            index += 1

        if stack:
            enclosure, position = stack[-1]
            raise ParseError(f"unclosed {enclosure.open!r} at position {position} in {text!r}")

        parts.append(text[start:])
        return self._finalize(parts)

    def _finalize(self, parts):
        if self._trim_spaces:
            parts = [part.strip() for part in parts]
        if self._unescape_quotes:
            parts = [self._unescape(part) for part in parts]
        if self._ignore_empty_first and parts and not parts[0]:
            del parts[0]
        if self._ignore_empty_last and parts and not parts[-1]:
            del parts[-1]
        if self._ignore_empties:
            parts = [part for part in parts if part]
        return parts

    def _unescape(self, part):
        if len(part) < 2 or part[0] not in self._openers:
            return part
        enclosure = self._openers[part[0]]
        if not enclosure.quote:
            return part

        # The opening quote must close exactly on the last character
        index = 1
        while index < len(part):
            char = part[index]
            if enclosure.escape is not None and char == enclosure.escape:
                index += 2
                continue
            if char == enclosure.close:
                break
            index += 1
        if index != len(part) - 1:
            return part

        inner = part[1:-1]
        if enclosure.escape is None:
            return inner

        unescaped = []
        index = 0
        while index < len(inner):
            char = inner[index]
            if char == enclosure.escape and index + 1 < len(inner) and inner[index + 1] in (enclosure.close, enclosure.escape):
                unescaped.append(inner[index + 1])
                index += 2
                continue
            unescaped.append(char)
            index += 1
        return "".join(unescaped)


def tokenizer():
    """
    Build the command-line tokenizer: space separated, every enclosure, empty tokens dropped.
    """
    return Splitter(" ", *ENCLOSURES, trim_spaces=True, ignore_empties=True)


def argument_splitter():
    """
    Build the argument splitter: '=' separated, every enclosure, quotes unescaped.
    """
    return Splitter(
        "=",
        *ENCLOSURES,
        trim_spaces=True,
        ignore_empty_first=True,
        ignore_empty_last=True,
        unescape_quotes=True,
    )


def split_argument(splitter, token, /):
    """
    Split a single argument token into a (key, value) pair.

    Returns
    - (None, value) for a bare value.
    - (key, value) for a 'key=value' token.

    Raises
    - ParseError when the token has unbalanced enclosures.
    - InvalidArgumentError when the token does not yield one or two fields
      (e.g. 'a=b=c' with an unquoted second '=').
    """
    match splitter.split(token):
        case [value]:
            return None, value
        case [key, value]:
            return key, value
        case _:
            raise InvalidArgumentError(f"invalid argument: {token}")


__all__ = (
    "Enclosure",
    "PARENTHESIS",
    "SQUARE_BRACKETS",
    "CURLY_BRACKETS",
    "DOUBLE_QUOTES",
    "SINGLE_QUOTES",
    "ENCLOSURES",
    "Splitter",
    "tokenizer",
    "argument_splitter",
    "split_argument",
)
