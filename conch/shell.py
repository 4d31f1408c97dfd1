"""
Conch shell: the parse / dispatch / complete engine of an embeddable command shell.

What this module provides
- Shell: session state (command registry, tokenizer, argument splitter, flags) and the
  operations working on one raw line of text:
  • run_string(line): tokenize, resolve, build the argument map, run the handler.
  • execute_commands(line): run ';'-separated commands in order, fail-fast.
  • complete(line): suggestions for a partially typed line, never raising.
  • run(): the interactive read loop (prompt, execute, report, repeat).
- LineSource: the contract the shell expects from its line-editing collaborator.
- PromptLineSource: the prompt_toolkit implementation (editing, history, tab completion).

Line grammar
- Tokens are space separated; quotes, parentheses, brackets and braces group text.
- The first token names the command; the rest are arguments, either bare values
  (assigned to the declared arguments in order) or 'name=value' pairs.
- 'exit' and 'quit' as the first token end the session (case-sensitive).
- ';' separates independent commands on one line.

Errors
- ParseError / UnknownCommandError abort the current line (or segment) and propagate;
  handler exceptions propagate unchanged. The read loop reports them and continues.
- Extra positional values and repeated keys are warnings, never errors.
"""
import os.path
import tempfile
from abc import ABC, abstractmethod
from types import MappingProxyType

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console
from rich.text import Text

from .builtin import help_command, getcompletion_command
from .commands import Command, command
from .completion import ShellCompleter
from .faults import *
from .splitter import tokenizer, argument_splitter, split_argument
from .utils import *

EXIT_TOKENS = ("exit", "quit")


class LineSource(ABC):
    """
    The line-editing collaborator of an interactive session.

    The shell only ever reads one raw line at a time, records executed lines, and
    loads/saves the history as an opaque append-only sequence of lines.
    """

    @abstractmethod
    def prompt(self, message, /):
        """Read the next raw line; raise EOFError at end of input, KeyboardInterrupt on abort."""

    @abstractmethod
    def append_history(self, line, /):
        """Record an executed line in the session history."""

    @abstractmethod
    def load_history(self, path, /):
        """Load a previous history; failures are ignored."""

    @abstractmethod
    def save_history(self, path, /):
        """Persist the history; failures are reported, never raised."""


class PromptLineSource(LineSource):
    """
    prompt_toolkit line source: tab completion through the shell's completion engine and
    an in-memory history persisted as a newline-separated file.
    """

    def __init__(self, shell):
        self._shell = shell
        self._history = InMemoryHistory()
        self._session = PromptSession(
            history=self._history,
            completer=ShellCompleter(shell),
            complete_while_typing=False,
        )

    def prompt(self, message, /):
        return self._session.prompt(message)

    def append_history(self, line, /):
        # prompt_toolkit already records the accepted input, skip consecutive repeats
        strings = self._history.get_strings()
        if line and (not strings or strings[-1] != line):
            self._history.append_string(line)

    def load_history(self, path, /):
        try:
            with open(path, encoding="utf-8") as file:
                lines = file.read().splitlines()
        except (OSError, UnicodeDecodeError):
            return
        for line in lines:
            if line:
                self._history.append_string(line)

    def save_history(self, path, /):
        try:
            with open(path, "w", encoding="utf-8") as file:
                file.writelines(line + "\n" for line in self._history.get_strings())
        except OSError as error:
            self._shell.stderr.print(Text(f"error writing history file: {error}"))


def _default_prompter(shell):
    return f"{shell.name}> "


class Shell:
    """
    An embeddable command shell session.

    Parameters
    - name: program name, shown in the default prompt and in fault headers.
    - commands: Command instances registered at construction.
    - builtin: register the 'help' and 'getcompletion' commands (default True).
    - case_insensitive: resolve command names ignoring case (storage keeps the
      registered spelling).
    - debug_completions: print completion diagnostics on the stderr console.
    - interactive: print warnings on the stderr console instead of emitting them
      through the warnings module (run() turns this on).
    - colorful: styled output for help and faults.
    - prompter: callable(shell) -> str producing the prompt (default '<name>> ').
    - data: arbitrary application payload available to handlers as shell.data.
    - history: history file name, joined onto the system temporary directory.
    - console / stderr: rich consoles for regular output and diagnostics.
    """

    def __init__(
            self,
            name="shell",
            /,
            *,
            commands=(),
            builtin=True,
            case_insensitive=False,
            debug_completions=False,
            interactive=False,
            colorful=False,
            prompter=Unset,
            data=None,
            history=Unset,
            console=Unset,
            stderr=Unset,
    ):
        if not isinstance(name, str) or not name:
            raise TypeError("shell name must be a non-empty string")
        prompter = coalesce(prompter, _default_prompter)
        if not callable(prompter):
            raise TypeError("shell prompter must be callable")
        self.name = name
        self.case_insensitive = bool(case_insensitive)
        self.debug_completions = bool(debug_completions)
        self.interactive = bool(interactive)
        self.colorful = bool(colorful)
        self.prompter = prompter
        self.data = data
        self.history = os.path.join(tempfile.gettempdir(), coalesce(history, f"{name}_history"))
        self.console = coalesce(console, Console())
        self.stderr = coalesce(stderr, Console(stderr=True))
        self.tokenizer = tokenizer()
        self.argument_splitter = argument_splitter()
        self._commands = None
        self._source = None

        if builtin:
            self.add_command(help_command())
            self.add_command(getcompletion_command())
        for cmd in commands:
            self.add_command(cmd)

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r} commands={list(self.commands)}>"

    # ── Registry ──────────────────────────────────────────────────────────────

    @property
    def commands(self):
        return MappingProxyType(self._commands if self._commands is not None else {})

    def add_command(self, command, /, name=Unset):
        """
        Register a command under its name (or the given one); the last registration wins.
        """
        if not isinstance(command, Command):
            raise TypeError("add_command() argument must be a command")
        name = coalesce(name, command.name)
        if not isinstance(name, str) or not name:
            raise TypeError("add_command() name must be a non-empty string")
        if self._commands is None:
            self._commands = {}
        self._commands[name] = command
        return command

    def command(self, source=Unset, /, **metadata):
        """
        Build a Command from a callable and register it; usable as a decorator.
        """
        @rename("command")
        def wrapper(source, /):
            return self.add_command(source if isinstance(source, Command) else command(source, **metadata))

        return wrapper(source) if source is not Unset else wrapper

    def lookup(self, name, /):
        """
        Resolve a command name; case is folded only when the shell is case-insensitive.
        """
        commands = self._commands or {}
        try:
            return commands[name]
        except KeyError:
            pass
        if self.case_insensitive:
            folded = name.casefold()
            for key, cmd in commands.items():
                if key.casefold() == folded:
                    return cmd
        raise UnknownCommandError(f"unknown command: {name}", prog=self.name, colorful=self.colorful)

    def parse_command(self, tokens, /):
        """
        Resolve the command named by the first token; None when there are no tokens.
        """
        if not tokens:
            return None
        return self.lookup(tokens[0])

    # ── Argument map ──────────────────────────────────────────────────────────

    def create_argument_map(self, command, tokens, /, *, quiet=False):
        """
        Build the name -> raw value map for the tokens following a command name.

        - A bare value fills the next declared argument, counting bare values only.
        - A 'name=value' token sets that name, declared or not.
        - Assignments happen in token order; the last write wins.
        - Bare values beyond the declared arguments are dropped with a warning.

        Raises ParseError when any token fails to split; nothing is returned then.
        """
        args = {}
        position = 0
        for token in tokens:
            key, value = split_argument(self.argument_splitter, token)
            if key is None:
                if position >= len(command.args):
                    if not quiet:
                        self._warn(ExtraArgumentWarning(f"extra argument: {value}"))
                    continue
                key = command.args[position].name
                position += 1
            if key in args and not quiet:
                self._warn(DuplicatedArgumentWarning(f"argument {key!r} given more than once, using {value!r}"))
            args[key] = value
        return args

    def _warn(self, warning):
        trigger(warning, prog=self.name, colorful=self.colorful, interactive=self.interactive, console=self.stderr)

    # ── Execution ─────────────────────────────────────────────────────────────

    def execute(self, tokens, /):
        """
        Run the command named by tokens[0] with the remaining tokens as arguments.
        """
        cmd = self.parse_command(tokens)
        if cmd is None:
            return
        args = self.create_argument_map(cmd, tokens[1:])
        cmd.run(self, args)

    def run_string(self, line, /):
        """
        Run one command line; returns True when the line asks to end the session.
        """
        line = line.strip()
        tokens = self.tokenizer.split(line)
        if not tokens:
            return False
        if tokens[0] in EXIT_TOKENS:
            return True
        self.execute(tokens)
        return False

    def execute_commands(self, line, /):
        """
        Run a compound 'cmd; cmd; ...' line in order.

        Stops at the first segment that raises (the error propagates, later segments
        do not run) or that asks to exit (returns True).
        """
        for segment in line.split(";"):
            if not segment:
                continue
            if self.run_string(segment):
                return True
        return False

    # ── Completion ────────────────────────────────────────────────────────────

    def _match_commands(self, line):
        prefix = line.lower()
        return [name for name in self.commands if name.lower().startswith(prefix)]

    def _debug(self, message):
        if self.debug_completions:
            self.stderr.print(Text(str(message)))

    def complete(self, line, /):
        """
        Suggestions for a partially typed line; the line is re-parsed on every call.

        - blank line: command names starting with the line.
        - a ';' anywhere: nothing (compound lines are not completed).
        - untokenizable line or exit token: nothing.
        - unknown command: command names starting with the line.
        - known command without completer: nothing.
        - known command with completer: its suggestions, each followed by a space.

        Failures anywhere degrade to no suggestions (with a diagnostic in debug mode).
        """
        if not line.strip():
            return self._match_commands(line)

        if ";" in line:
            return []

        try:
            tokens = self.tokenizer.split(line.strip())
        except ParseError as error:
            self._debug(error)
            return []

        if not tokens or tokens[0] in EXIT_TOKENS:
            return []

        try:
            cmd = self.parse_command(tokens)
        except UnknownCommandError as error:
            # TODO: confirm with product whether debug mode should report the error *and* still list names
            self._debug(f"error parsing command: {error}")
            return self._match_commands(line)

        if cmd is None or not cmd.completable:
            return []

        try:
            args = self.create_argument_map(cmd, tokens[1:], quiet=not self.debug_completions)
        except ParseError as error:
            self._debug(f"error creating arg map: {error}")
            return []

        try:
            completions = cmd.complete(self, line, args)
        except Exception as error:
            self._debug(f"error running completer: {error}")
            return []

        if not all(isinstance(completion, str) for completion in completions):
            self._debug(f"error running completer: {cmd.name!r} returned non-string suggestions")
            return []

        return [completion + " " for completion in completions]

    # ── Interactive session ───────────────────────────────────────────────────

    def _report(self, error):
        if isinstance(error, ShellException):
            self.stderr.print(error.__replace__(**{"prog": self.name, "colorful": self.colorful} | dict(error.options)))
        else:
            self.stderr.print(Text(f"error: {error}"))

    def _save_history(self):
        if self._source is not None:
            self._source.save_history(self.history)

    def run(self, source=Unset, /, *, signals=Unset):
        """
        Prompt for lines until exit, end of input, or an aborted prompt.

        - source: LineSource to read from (default: a PromptLineSource).
        - signals: SignalManager on which a history-saving interrupt hook is
          registered for the duration of the session.

        Errors of a line are reported on the stderr console and the loop continues.
        The history is loaded before the first prompt and saved when the loop ends.
        """
        self.interactive = True
        self._source = source if source is not Unset else PromptLineSource(self)
        self._source.load_history(self.history)
        if signals is not Unset:
            signals.on_interrupt(self._save_history)

        try:
            while True:
                try:
                    line = self._source.prompt(self.prompter(self))
                except EOFError:
                    return
                except KeyboardInterrupt:
                    self.stderr.print(Text("prompt error: prompt aborted"))
                    return

                try:
                    done = self.execute_commands(line)
                except Exception as error:
                    self._report(error)
                    done = False

                # one history entry per prompted line, compound lines included
                if line.strip() and not done:
                    self._source.append_history(line.strip())
                if done:
                    return
        finally:
            if signals is not Unset:
                signals.off_interrupt(self._save_history)
            self._save_history()
            self._source = None


__all__ = (
    "EXIT_TOKENS",
    "LineSource",
    "PromptLineSource",
    "Shell",
)
