"""
Conch faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings), grouped by domain.
- ShellException / ShellWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault.
- getdoc(): optional description lookup for a code from the host application.

Propagation
- Errors are plain exceptions: parse and lookup errors abort the current line (or the
  current segment of a compound line) and reach the read loop, which renders them.
- Warnings never abort anything: in interactive sessions they are printed on the
  stderr console, otherwise they go through the warnings module.

Customization
- __styles__ in __main__ overrides any palette entry.
- __codes__ in __main__ remaps codes to host labels.
- __prog__ in __main__ replaces the program name shown in headers.
"""
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the shell (stable identifiers).

    grouping (by high-level domain)
    - parsing (1110x)
      • UNBALANCED_ENCLOSURE, INVALID_ARGUMENT
    - routing (1111x)
      • UNKNOWN_COMMAND
    - delegated (1112x)
      • HANDLER_FAILURE, MISSING_VALUE
    - output (1113x)
      • UNKNOWN_FORMAT
    - warnings (12xxx)
      • EXTRA_ARGUMENT, DUPLICATED_ARGUMENT
    """
    # --- parsing errors (11xxx) ---
    UNBALANCED_ENCLOSURE        = 11101
    INVALID_ARGUMENT            = 11102

    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11111

    # --- delegated errors (11xxx) ---
    HANDLER_FAILURE             = 11121
    MISSING_VALUE               = 11122

    # --- output errors (11xxx) ---
    UNKNOWN_FORMAT              = 11131

    # --- warnings (12xxx) ---
    EXTRA_ARGUMENT              = 12111
    DUPLICATED_ARGUMENT         = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette):
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = fault.options.get("prog") or getattr(main, "__prog__", "conch")
    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(fault.options["code"].normalize(), "code"),
        " | ",
        text(fault.options["title"].title(), "title"),
        " ]"
    )
    message = text(fault.message, "message")

    body = [message]
    if hint := fault.options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fault.options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class ShellException(Exception):
    """
    base error of the shell core.

    carries a message and an immutable options mapping; every subclass declares
    its code/title/hint in __defaults__, and any of them can be overridden per
    instance through keyword options.
    """
    __defaults__ = {
        "code": FaultCode.HANDLER_FAILURE,
        "title": "command failed",
        "hint": "",
    }

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message if message is not Unset else "")
        self.message = message if message is not Unset else ""
        self.options = MappingProxyType(type(self).__defaults__ | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseError(ShellException):
    __defaults__ = {
        "code": FaultCode.UNBALANCED_ENCLOSURE,
        "title": "parse error",
        "hint": "close every quote, parenthesis, bracket and brace you open",
    }


class InvalidArgumentError(ParseError):
    __defaults__ = {
        "code": FaultCode.INVALID_ARGUMENT,
        "title": "invalid argument",
        "hint": "write arguments as 'value' or 'name=value'; quote values that contain '='",
    }


class UnknownCommandError(ShellException):
    __defaults__ = {
        "code": FaultCode.UNKNOWN_COMMAND,
        "title": "unknown command",
        "hint": "run 'help' to list the available commands",
    }


class HandlerError(ShellException):
    __defaults__ = {
        "code": FaultCode.HANDLER_FAILURE,
        "title": "command failed",
        "hint": "",
    }


class MissingValueError(HandlerError):
    __defaults__ = {
        "code": FaultCode.MISSING_VALUE,
        "title": "missing value",
        "hint": "run 'help command=<name>' to see the arguments of a command",
    }


class FormatError(ShellException):
    __defaults__ = {
        "code": FaultCode.UNKNOWN_FORMAT,
        "title": "unknown format",
        "hint": "run 'help command=getcompletion' to list the supported formats",
    }


class ShellWarning(Warning):
    """
    base warning of the shell core; never interrupts the current line.
    """
    __defaults__ = {
        "code": FaultCode.EXTRA_ARGUMENT,
        "title": "warning",
        "hint": "",
    }

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message if message is not Unset else "")
        self.message = message if message is not Unset else ""
        self.options = MappingProxyType(type(self).__defaults__ | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("interactive", False):
            return warnings.warn(self, stacklevel=4)
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ExtraArgumentWarning(ShellWarning):
    __defaults__ = {
        "code": FaultCode.EXTRA_ARGUMENT,
        "title": "extra argument",
        "hint": "the command declares fewer arguments; the value was ignored",
    }


class DuplicatedArgumentWarning(ShellWarning):
    __defaults__ = {
        "code": FaultCode.DUPLICATED_ARGUMENT,
        "title": "duplicated argument",
        "hint": "the last value given wins",
    }


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - errors are raised; warnings are printed (interactive) or emitted via warnings.warn.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be an fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "ShellException",
    "ParseError",
    "InvalidArgumentError",
    "UnknownCommandError",
    "HandlerError",
    "MissingValueError",
    "FormatError",
    "ShellWarning",
    "ExtraArgumentWarning",
    "DuplicatedArgumentWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
