"""
Conch built-in commands.

- help [command=<name>]
  Lists every registered command with its description, or describes one command and
  its declared arguments (name, description, default).

- getcompletion line=<text|@empty> [format=<name>]
  Exposes the completion engine to non-interactive callers (shell completion scripts,
  editors). '@empty' stands for the empty line, which cannot be passed positionally.
  Formats:
  • printNewlineArray (default): one '<index>) <suggestion>' line per suggestion.
  • printArray: the Python list representation.
  • strJoinArray_spaceSep / _newlineSep / _commaSep / _commaSpaceSep: one joined line.

Palette keys (help)
- title, command-name, description, argument-name, default, hint
Define __styles__ in __main__ to override any of them; styling only applies when the
shell is colorful.
"""
from collections import defaultdict

from rich.text import Text

from .commands import Argument, Command
from .completion import complete_arguments
from .faults import FormatError, MissingValueError

EMPTY_LINE = "@empty"

FORMATS = {
    "printNewlineArray": lambda completions: [f"{index}) {completion}" for index, completion in enumerate(completions)],
    "printArray": lambda completions: [repr(list(completions))],
    "strJoinArray_spaceSep": lambda completions: [" ".join(completions)],
    "strJoinArray_newlineSep": lambda completions: ["\n".join(completions)],
    "strJoinArray_commaSep": lambda completions: [",".join(completions)],
    "strJoinArray_commaSpaceSep": lambda completions: [", ".join(completions)],
}

DEFAULT_FORMAT = "printNewlineArray"


def _styler(shell):
    styles = defaultdict(str, {
        "title": "bold #FFFFFF",  # Pure white headers
        "command-name": "bold #36C5F0",  # Sky-blue commands
        "description": "#9CA3AF",  # Muted gray
        "argument-name": "bold #00E6FF",  # CYAN for arguments
        "default": "bold #FFD600",  # AMBER for defaults
        "hint": "italic #737373",  # Dim footer gray
    } | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if shell.colorful else "")

    return text


def _help(shell, args):
    text = _styler(shell)

    if name := args.get("command"):
        cmd = shell.lookup(name)  # raises before anything is printed

        lines = [
            Text.assemble(text("command", "title"), ": ", text(name, "command-name")),
            Text.assemble(text("description", "title"), ": ", text(cmd.descr, "description")),
            Text.assemble(text("arguments", "title"), ":"),
        ]
        for argument in cmd.args:
            lines.append(Text.assemble(
                "  ",
                text(argument.name, "argument-name"),
                " : ",
                text(argument.descr, "description"),
                " (default: ",
                text(argument.default, "default"),
                ")",
            ))
    else:
        lines = [Text.assemble(text("commands", "title"), ":")]
        for key, cmd in shell.commands.items():
            lines.append(Text.assemble("  ", text(key, "command-name"), ": ", text(cmd.descr, "description")))
        lines.append(text("use 'help <command>' to get help for a specific command", "hint"))

    for line in lines:
        shell.console.print(line, soft_wrap=True)


def help_command():
    """
    Build the 'help' command.
    """
    cmd = Command(
        _help,
        name="help",
        descr="Get help for a command",
        args=[Argument("command", "Command to get help for", "")],
    )

    @cmd.completer
    def complete(shell, line, args):
        prefix = args.get("command", "").lower()
        return [f"{cmd.name} {name}" for name in shell.commands if name.lower().startswith(prefix)]

    return cmd


def _getcompletion(shell, args):
    line = args.get("line", "")
    if not line:
        raise MissingValueError("no line provided", prog=shell.name)
    if line == EMPTY_LINE:
        line = ""

    format = args.get("format") or DEFAULT_FORMAT
    try:
        render = FORMATS[format]
    except KeyError:
        raise FormatError(f"unknown format: {format}", prog=shell.name) from None

    for output in render(shell.complete(line)):
        shell.console.out(output, highlight=False)


def getcompletion_command():
    """
    Build the 'getcompletion' command.
    """
    cmd = Command(
        _getcompletion,
        name="getcompletion",
        descr="Get completions for a line",
        args=[
            Argument("line", f"line to get completion for. Use {EMPTY_LINE} for empty line", ""),
            Argument("format", "format to return completions in (%s)" % "/".join(FORMATS), DEFAULT_FORMAT),
        ],
    )

    @cmd.completer
    def complete(shell, line, args):
        return complete_arguments(shell, cmd, line, args)

    return cmd


__all__ = (
    "EMPTY_LINE",
    "FORMATS",
    "DEFAULT_FORMAT",
    "help_command",
    "getcompletion_command",
)
