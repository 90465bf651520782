"""
Commandeer faults (errors and signals) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for user-facing errors.
- CommandException: base type carrying a message plus options (code, title, hint)
  that knows how to render itself with rich.
- HelpRequested: control signal meaning “render usage text”; it is not a failure
  and deliberately does not derive from CommandException.

UX goals
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Readable styling, configurable via __styles__ in __main__.

Integration
- The dispatcher and the flag set raise these faults; Dispatcher.main() renders
  them through copy.replace(fault, prog=..., colorful=..., fancy=...).
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping
    - routing (1110x): UNKNOWN_COMMAND
    - switches (1111x/1112x): MALFORMED_TOKEN, UNKNOWN_SWITCH, FLAG_ASSIGNMENT,
      OPTION_VALUE_REQUIRED, INVALID_VALUE
    - delegated (1113x): DELEGATED_ERROR
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101

    # --- switch/flag/option errors (11xxx) ---
    MALFORMED_TOKEN             = 11111
    UNKNOWN_SWITCH              = 11112
    FLAG_ASSIGNMENT             = 11113
    OPTION_VALUE_REQUIRED       = 11117
    INVALID_VALUE               = 11124

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR             = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(self.options.get("prog", getattr(main, "__prog__", "")), styler("prog-name"))
        code = self.options.get("code", FaultCode.DELEGATED_ERROR)
        title = self.options.get("title", "error")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize(), styler("code")),
            " | ",
            text(title.title(), styler("error-title")),
            " ]"
        )
        renders = [text(self.message, styler("error-message"))]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedTokenError(CommandException): ...
class UnknownSwitchError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class OptionValueRequiredError(CommandException): ...
class InvalidValueError(CommandException): ...
class DelegatedCommandError(CommandException): ...


class UnknownCommandError(CommandException):
    @property
    def input(self):
        """The command name that failed to resolve."""
        return self.options.get("input")


class HelpRequested(Exception):
    """
    Signal raised when usage text should be shown instead of running a command.

    The resolved command (if any) and its name travel with the signal so that
    callers can still dispatch to it, letting the command print its own help.
    """

    def __init__(self, command=None, name=None):
        super().__init__("help requested")
        self.command = command
        self.name = name


__all__ = (
    "CommandException",
    "MalformedTokenError",
    "UnknownSwitchError",
    "FlagAssignmentError",
    "OptionValueRequiredError",
    "InvalidValueError",
    "UnknownCommandError",
    "DelegatedCommandError",
    "HelpRequested",
    "FaultCode",
)
