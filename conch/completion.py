r"""
Conch completion helpers.

What this module provides
- find_untyped_argument(text): the bare token (no '=') the user is still typing, if any.
- find_last_argument(text): the last 'key=value' token of an argument string.
- replace_from_back(text, old, new, count=1): replace the last occurrences of a substring.
- complete_arguments(shell, command, line, args): a generic completer suggesting the
  declared argument names of a command; commands can use it as their completer.
- ShellCompleter: prompt_toolkit adapter feeding the shell's completion engine
  into an interactive prompt.

Quoting
- Quoted spans are atomic: a space or an '=' inside '...' or "..." is neither a token
  boundary nor a key/value separator. A quote closes only on the same, unescaped,
  quote character.

Examples
    >>> find_untyped_argument("abc=def ghi")
    'ghi'
    >>> find_untyped_argument("abc=def ghi=")
    ''
    >>> find_untyped_argument(r"abc=def ghi:json='{\"a\":\"b=c\"==w=1 x}'")
    ''
"""
from prompt_toolkit.completion import Completer, Completion


def _split_quoted(text):
    # Space separated, quoted spans kept whole (quotes included)
    parts = []
    current = []
    quote = None
    escaped = False

    for char in text:
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            current.append(char)
        elif char in ("'", '"'):
            quote = char
            current.append(char)
        elif char == " ":
            if current:
                parts.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        parts.append("".join(current))
    return parts


def _has_separator(token):
    # '=' outside of quotes
    quote = None
    escaped = False
    for char in token:
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "=":
            return True
    return False


def find_untyped_argument(text, /):
    """
    Return the last untyped token of an argument string, or "".

    A token is untyped when it carries no '='. A token ending with '=' resets the
    search: the user has moved on to typing a value, so nothing is untyped.
    """
    untyped = ""
    for token in _split_quoted(text):
        if not _has_separator(token):
            untyped = token
        elif token.endswith("="):
            untyped = ""
    return untyped


def find_last_argument(text, /):
    """
    Return the last token of an argument string that carries an '=' (or "").
    """
    last = ""
    for token in _split_quoted(text):
        if _has_separator(token):
            last = token
    return last


def _typed_keys(text):
    keys = set()
    for token in _split_quoted(text):
        if _has_separator(token):
            keys.add(token.split("=", 1)[0])
    return keys


def replace_from_back(text, old, new, count=1, /):
    """
    Replace the last `count` occurrences of `old` in `text` by `new`.
    """
    if not old or count <= 0:
        return text
    return new.join(text.rsplit(old, count))


def complete_arguments(shell, command, line, args, /):
    """
    Suggest declared argument names of a command for the current line.

    Cases
    - The caret follows an '=' (the last key=value token has no value yet): nothing,
      the user types a literal value.
    - An untyped token is in progress: every declared argument whose name starts with
      it, and that is not already typed as 'name=...', as
      '<line without the token> <name>='.
    - Otherwise: every declared argument absent from the argument map, as
      '<command-name> <name>='.
    """
    arguments = line.strip().replace(command.name, "", 1)

    last = find_last_argument(arguments)
    if last.endswith("="):
        return []

    untyped = find_untyped_argument(arguments)

    if shell.debug_completions:
        shell.stderr.print(f"untyped arg: {untyped!r} last arg: {last!r} args: {arguments!r}", markup=False, highlight=False)

    if untyped:
        typed = _typed_keys(arguments)
        prefix = replace_from_back(line, untyped, "", 1).strip()
        return [
            f"{prefix} {argument.name}="
            for argument in command.args
            if argument.name.startswith(untyped) and argument.name not in typed
        ]

    return [f"{command.name} {argument.name}=" for argument in command.args if argument.name not in args]


class ShellCompleter(Completer):
    """
    prompt_toolkit completer backed by Shell.complete().

    Every suggestion is a whole line and replaces the text before the cursor.
    """

    def __init__(self, shell):
        self.shell = shell

    def get_completions(self, document, complete_event):
        line = document.text_before_cursor
        for suggestion in self.shell.complete(line):
            yield Completion(suggestion, start_position=-len(line), display=suggestion.strip() or suggestion)


__all__ = (
    "find_untyped_argument",
    "find_last_argument",
    "replace_from_back",
    "complete_arguments",
    "ShellCompleter",
)
