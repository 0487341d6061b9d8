"""
Argtree faults: input errors, warnings and help/version interrupts.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue, grouped by
  domain (routing, switches, values, leftovers, caller misuse, warnings).
- CommandException / CommandWarning: carry a message plus options (tool, command,
  title, code, hint, docs, shell, fancy, colorful) and render themselves with rich.
- CommandInterrupt: help and version requests. They are not errors, they stop the
  parse and end the process successfully in shell mode.
- trigger(): single entry point that merges runtime options into a fault and
  surfaces it (print and exit in shell mode, raise/warn otherwise).
- getdoc(): optional documentation lookup from the host application.

Definition errors (bad option names, duplicate registrations) are not faults:
they are raised as TypeError/ValueError at construction time.

Integration
- The parse engine raises faults, Parser.parse() catches them and calls
  Parser.trigger() once. Hosts may customize copy through __main__:
  __styles__ (palette), __codes__ (code labels), __docs__ (code docs), __prog__.
"""
import sys
import warnings
from abc import ABC
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
    canonical fault codes (stable identifiers).

    grouping
    - routing (1110x): MULTIPLE_COMMANDS, MISSING_SUBCOMMAND
    - switches (1111x): MISSING_OPTION, MISSING_INLINE_VALUE, INLINE_ARITY_MISMATCH
    - values (1112x): NOT_ENOUGH_VALUES, AT_LEAST_ONE_VALUE_REQUIRED
    - leftovers (1114x): UNPARSED_TOKENS
    - caller input (1115x/1116x): INVALID_ARGV, MISSING_ACTION
    - warnings (12xxx): REPEATED_OPTION
    """
    # --- routing errors (11xxx) ---
    MULTIPLE_COMMANDS           = 11101
    MISSING_SUBCOMMAND          = 11102

    # --- switch errors (11xxx) ---
    MISSING_OPTION              = 11111
    MISSING_INLINE_VALUE        = 11112
    INLINE_ARITY_MISMATCH       = 11113

    # --- value errors (11xxx) ---
    NOT_ENOUGH_VALUES           = 11121
    AT_LEAST_ONE_VALUE_REQUIRED = 11122

    # --- leftovers (11xxx) ---
    UNPARSED_TOKENS             = 11141

    # --- caller input (11xxx) ---
    INVALID_ARGV                = 11151
    MISSING_ACTION              = 11161

    # --- warnings (12xxx) ---
    REPEATED_OPTION             = 12111

    def normalize(self):
        """
        return the host label for this code (__main__.__codes__) or its number.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _renderer(fault, palette):
    """
    Build the rich renderable shared by exceptions and warnings.

    Header `[ prog — code | Title ]`, then the message, then ` → hint`.
    Missing options degrade gracefully so a fault raised straight from the
    engine (before trigger() filled it in) still renders.
    """
    main = __import__("__main__")
    options = fault.options

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment.copy()
        return Text(str(fragment), style)

    tool = options.get("tool")
    prog = getattr(main, "__prog__", getattr(tool, "name", None) or "argtree")
    code = options.get("code")
    kind = "warning" if isinstance(fault, Warning) else "error"

    header = Text.assemble(
        "[ ",
        text(prog, styler("prog-name")),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "?", styler("code")),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), styler(f"{kind}-title")),
        " ]"
    )
    message = text(fault.message or "", styler(f"{kind}-message"))
    renders = [message]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
    if docs := options.get("docs"):
        renders.append(Text.assemble(text(" ⓘ ", styler("hint-arrow")), text(docs, styler("docs"))))

    if fancy:
        return Panel(Group(*renders), title=header, title_align="left")
    return Group(header, *renders)


class CommandException(Exception):
    """
    Base class of parse-time input errors.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "docs": "#9CA3AF",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MultipleCommandsError(CommandException): ...
class MissingSubcommandError(CommandException): ...
class MissingOptionError(CommandException): ...
class MissingInlineValueError(CommandException): ...
class InlineArityError(CommandException): ...
class NotEnoughValuesError(CommandException): ...
class AtLeastOneValueRequiredError(CommandException): ...
class UnparsedTokensError(CommandException): ...
class InvalidArgvError(CommandException): ...
class MissingActionError(CommandException): ...


class CommandWarning(ABC, Warning):
    """
    Base class of non-fatal parse-time conditions.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",

            # body
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
            "docs": "#9CA3AF",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=4)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RepeatedOptionWarning(CommandWarning): ...


class CommandInterrupt(Exception):
    """
    Base class of requests that end parsing successfully (help, version).

    options
    - tool: the Parser, used for rendering.
    - command: the Command the request applies to.
    """

    def __init__(self, **options):
        super().__init__(type(self).__name__)
        self.options = MappingProxyType(options)

    def __render__(self) -> None:
        raise NotImplementedError

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        self.__render__()
        sys.exit(0)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{**self.options, **overrides})


class HelpRequested(CommandInterrupt):
    def __render__(self) -> None:
        self.options["tool"].helper(self.options["command"])


class VersionRequested(CommandInterrupt):
    def __render__(self) -> None:
        self.options["tool"].versioner()


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into a copy of the fault before triggering.
    - shell mode renders (and exits for errors/interrupts); otherwise errors and
      interrupts are raised and warnings go through warnings.warn.
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
    documentation for a fault code from __main__.__docs__, or None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "MultipleCommandsError",
    "MissingSubcommandError",
    "MissingOptionError",
    "MissingInlineValueError",
    "InlineArityError",
    "NotEnoughValuesError",
    "AtLeastOneValueRequiredError",
    "UnparsedTokensError",
    "InvalidArgvError",
    "MissingActionError",
    "CommandWarning",
    "RepeatedOptionWarning",
    "CommandInterrupt",
    "HelpRequested",
    "VersionRequested",
    "FaultCode",
    "trigger",
    "getdoc",
)
