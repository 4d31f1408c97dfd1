"""
Conch command layer: describe commands and their arguments.

What this module provides
- Argument: one declared argument of a command, a (name, descr, default) triple.
- Command: wraps a Python callable into a shell command with:
  • A name and a description (derived from the callable when omitted).
  • An ordered list of declared arguments (positional order = declaration order).
  • An optional completion capability attached with @cmd.completer.
- command(...): create a Command or a decorator that produces one.

Arguments are raw strings
- Every value reaching a handler is the string typed by the user. Handlers parse
  numbers, booleans, etc. themselves; missing keys are not pre-populated with the
  declared defaults, use Command.defaults(args) to apply them.

Quick start
    from conch import Shell, Argument

    shell = Shell("demo")

    @shell.command(descr="say hello", args=[Argument("name", "who to greet", "world")])
    def hello(shell, args):
        args = hello.defaults(args)
        shell.console.print("hello", args["name"])

    @hello.completer
    def _(shell, line, args):
        return ["hello world", "hello there"]
"""
import inspect
import re

from rich.text import Text

from .utils import *


class Argument:
    """
    One declared argument of a command.

    Attributes (read-only)
    - name: the key used in 'name=value' tokens and in the argument map.
    - descr: short help shown by the help command.
    - default: default value, as a string, shown by help and applied by Command.defaults().

    An Argument unpacks like the triple it describes:
        name, descr, default = Argument("host", "target host", "localhost")
    """
    __slots__ = ("_name", "_descr", "_default")

    def __init__(self, name, descr="", default=""):
        if not isinstance(name, str):
            raise TypeError("argument name must be a string")
        if not name or re.search(r"[\s=]", name):
            raise ValueError(f"argument name must be non-empty and contain no whitespace or '=': {name!r}")
        if not isinstance(descr, str | Text):
            raise TypeError("argument descr must be a string")
        if not isinstance(default, str):
            raise TypeError("argument default must be a string (values are always raw strings)")
        self._name = name
        self._descr = descr
        self._default = default

    @property
    def name(self):
        return self._name

    @property
    def descr(self):
        return self._descr

    @property
    def default(self):
        return self._default

    def __iter__(self):
        return iter((self._name, self._descr, self._default))

    def __eq__(self, other):
        if not isinstance(other, Argument):
            return NotImplemented
        return tuple(self) == tuple(other)

    def __hash__(self):
        return hash(tuple(self))

    def __repr__(self):
        return f"{type(self).__name__}({self._name!r}, {str(self._descr)!r}, {self._default!r})"

    def __rich_repr__(self):
        yield self._name
        yield "descr", str(self._descr), ""
        yield "default", self._default, ""


def _resolve_arguments(args):
    resolved = []
    seen = set()
    for arg in args:
        if isinstance(arg, Argument):
            argument = arg
        elif isinstance(arg, tuple | list) and 1 <= len(arg) <= 3:
            argument = Argument(*arg)
        elif isinstance(arg, str):
            argument = Argument(arg)
        else:
            raise TypeError(f"command args must be Argument instances or (name, descr, default) tuples, not {arg!r}")
        if argument.name in seen:
            raise ValueError(f"command argument {argument.name!r} is declared twice")
        seen.add(argument.name)
        resolved.append(argument)
    return tuple(resolved)


class Command:
    """
    A shell command: a run handler plus its declared arguments.

    Lifecycle
    - Constructed from a callback taking (shell, args); args is the argument map
      (a fresh dict of name -> raw string) built for each invocation.
    - Registered into a Shell under a name; re-registering the same name replaces it.
    - Optionally given a completer taking (shell, line, args) and returning an
      iterable of whole-line suggestions.

    Notes
    - A command without a completer offers no suggestions at all; the shell does not
      fall back to listing command names for it.
    """

    def __init__(self, callback, /, name=Unset, descr=Unset, args=()):
        if not callable(callback):
            raise TypeError("command callback must be callable")
        name = coalesce(name, getattr(callback, "__name__", Unset))
        if not isinstance(name, str):
            raise TypeError("command name must be a string")
        if not name or re.search(r"[\s;=]", name):
            raise ValueError(f"command name must be non-empty and contain no whitespace, ';' or '=': {name!r}")
        descr = coalesce(descr, inspect.getdoc(callback) or "")
        if not isinstance(descr, str | Text):
            raise TypeError("command descr must be a string")
        self._callback = callback
        self._completer = Unset
        self._name = name
        self._descr = descr
        self._args = _resolve_arguments(args)

    @property
    def name(self):
        return self._name

    @property
    def descr(self):
        return self._descr

    @property
    def args(self):
        return self._args

    @property
    def completable(self):
        return self._completer is not Unset

    def completer(self, completer, /):
        """
        Attach the completion capability to this command.

        Rules
        - Must be callable as completer(shell, line, args).
        - Can be set only once per command.

        Returns
        - The same callable, enabling decorator-style usage: @cmd.completer
        """
        if not callable(completer):
            raise TypeError("command completer must be callable")
        if self._completer is not Unset:
            raise TypeError("command completer cannot be overridden")
        self._completer = completer
        return completer

    def run(self, shell, args, /):
        return self._callback(shell, args)

    def complete(self, shell, line, args, /):
        if self._completer is Unset:
            return []
        return list(self._completer(shell, line, args) or ())

    def defaults(self, args, /):
        """
        Return a copy of an argument map with declared defaults filled in for absent keys.
        """
        return {argument.name: argument.default for argument in self._args} | dict(args)

    def __call__(self, shell, args, /):
        return self.run(shell, args)

    def __repr__(self):
        return f"<{type(self).__name__} {self._name!r} args={[argument.name for argument in self._args]}>"

    def __rich_repr__(self):
        yield self._name
        yield "descr", str(self._descr), ""
        yield "args", self._args, ()
        yield "completable", self.completable, False


def command(source=Unset, /, **metadata):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct: cmd = command(func, name="x", args=[...])
    - Decorator:
        @command(descr="...", args=[...])
        def func(shell, args): ...
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, **metadata)

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "Argument",
    "Command",
    "command",
)
