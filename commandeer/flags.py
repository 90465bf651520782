r"""
Commandeer flag sets: named switches, tolerant parsing and the defaults table.

Overview
- Values
  • BoolValue: presence-only switch; a bare "--name" means true, "--name=false" is accepted.
  • TypedValue: value-bearing switch converted by a callable (str, int, float, ...).
  Values are shared objects: two flag sets holding the same value object observe
  each other's parses (see Dispatcher.ignore_global_options).

- Flag: one named switch (optional one-character shorthand), its usage text, its
  default in string form, and whether it is hidden from the defaults table.

- FlagSet: ordered collection of flags plus the parser.
  • Flags and positionals may be interspersed; "--" ends flag parsing.
  • Long forms: "--name", "--name=value", "--name value".
  • Short forms: "-x", "-abc" (boolean clusters), "-ovalue", "-o value", "-o=value".
  • tolerant=True drops unknown flags instead of raising (a following bare token
    is taken as the unknown flag's value and dropped with it).
  • An undefined "-h"/"--help" runs the usage hook, then raises HelpRequested.

Quick example:
    >>> flags = FlagSet("tool")
    >>> flags.boolean("verbose", "v", usage="talk more")
    >>> flags.option("threads", "t", type=int, default=1, usage="worker count")
    >>> flags.parse(["-v", "build", "--threads=4"])
    >>> flags["threads"], flags.args
    (4, ('build',))
"""
import re
from collections import deque

from rich.console import Console

from .faults import *
from .utils import *

_NAME = re.compile(r"[^\W\d_](-?[^\W_]+)*")

_BOOLEANS = {
    "1": True, "t": True, "true": True,
    "0": False, "f": False, "false": False,
}


class BoolValue:
    typename = "bool"
    implicit = "true"  # assumed when the switch appears without a value

    def __init__(self, default=False, /):
        self._default = self._value = bool(default)

    def get(self):
        return self._value

    def set(self, text, /):
        try:
            self._value = _BOOLEANS[text.lower()]
        except KeyError:
            raise ValueError(f"invalid boolean {text!r}") from None

    def reset(self):
        self._value = self._default

    def __str__(self):
        return "true" if self._value else "false"


class TypedValue:
    implicit = None

    def __init__(self, type=str, default=None, /):
        if not callable(type):
            raise TypeError("typed value 'type' must be callable")
        self._type = type
        self._default = self._value = default

    @property
    def typename(self):
        return getattr(self._type, "__name__", "value")

    def get(self):
        return self._value

    def set(self, text, /):
        self._value = self._type(text)

    def reset(self):
        self._value = self._default

    def __str__(self):
        return "" if self._value is None else str(self._value)


class Flag:
    """
    A single named switch inside a FlagSet.

    Read-only: name, shorthand, usage, value, default.
    Managed by the owning FlagSet: hidden, changed.
    """

    name = mirror("name")
    shorthand = mirror("shorthand")
    usage = mirror("usage")
    value = mirror("value")
    default = mirror("default")
    hidden = mirror("hidden")
    changed = mirror("changed")

    def __init__(self, name, shorthand, usage, value, default, /):
        self._name = name
        self._shorthand = shorthand
        self._usage = usage
        self._value = value
        self._default = default
        self._hidden = False
        self._changed = False

    def __repr__(self):
        return "flag(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        for name in ("name", "shorthand", "usage", "default", "hidden", "changed"):
            yield name, getattr(self, name)


def _iszero(flag):
    return flag.default in ("", "0", "0.0", "false", "None", "[]")


class FlagSet:
    """
    Named collection of flags with a pflag-style parser.

    Parameters
    - name: str, used in fault hints and the usage header.
    - tolerant: bool, drop unknown flags instead of raising UnknownSwitchError.
    - console: rich Console receiving the usage text; defaults to stderr.

    State
    - values live in the flags' value objects and are never reset by parse();
      call reset() to restore defaults and clear positionals.
    - usage: callable run (without arguments) when an undefined -h/--help is
      parsed; None writes "Usage of <name>:" and the defaults table.
    """

    def __init__(self, name, /, *, tolerant=False, console=Unset):
        if not isinstance(name, str):
            raise TypeError("flag set 'name' must be a string")
        if not isinstance(console, Console | Unset):
            raise TypeError("flag set 'console' must be a rich console")
        self._name = name
        self._tolerant = bool(tolerant)
        self._console = Console(stderr=True) if console is Unset else console
        self._usage = None
        self._formal = {}
        self._shorthands = {}
        self._arguments = []
        self._offsets = []

    def __repr__(self):
        return f"flag-set(name={self._name!r}, flags={sorted(self._formal)!r})"

    @property
    def name(self):
        return self._name

    @property
    def tolerant(self):
        return self._tolerant

    @tolerant.setter
    def tolerant(self, tolerant):
        self._tolerant = bool(tolerant)

    @property
    def console(self):
        return self._console

    @property
    def usage(self):
        return self._usage

    @usage.setter
    def usage(self, usage):
        if usage is not None and not callable(usage):
            raise TypeError("flag set 'usage' must be callable or None")
        self._usage = usage

    def print_usage(self):
        """Run the usage hook, or write the default header and defaults table."""
        if self._usage is not None:
            self._usage()
            return
        self._console.print(
            "Usage of %s:\n%s" % (self._name, self.defaults()),
            end="", soft_wrap=True, highlight=False, markup=False, emoji=False
        )

    @property
    def args(self):
        """Positional arguments left over by the last parse."""
        return tuple(self._arguments)

    @property
    def offsets(self):
        """Index of each positional in the token list given to the last parse."""
        return tuple(self._offsets)

    def var(self, value, name, /, shorthand=Unset, usage="", default=Unset):
        """
        Define a flag backed by an existing value object.

        The default string is taken from the value's current state unless given.

        Raises
        - TypeError: on non-string name/shorthand/usage or a value without get/set.
        - ValueError: on invalid names, or names/shorthands already defined.
        """
        if not isinstance(name, str):
            raise TypeError("flag name must be a string")
        elif not _NAME.fullmatch(name):
            raise ValueError(f"flag name {name!r} must be a valid switch name")
        elif name in self._formal:
            raise ValueError(f"{self._name} flag redefined: {name}")
        if not isinstance(shorthand, str | Unset):
            raise TypeError("flag shorthand must be a string")
        elif isinstance(shorthand, str):
            if len(shorthand) != 1 or shorthand == "-" or shorthand == "=":
                raise ValueError(f"flag shorthand {shorthand!r} must be a single character")
            elif shorthand in self._shorthands:
                raise ValueError(
                    f"{self._name} shorthand {shorthand!r} of {name!r} is already used by {self._shorthands[shorthand].name!r}"
                )
        if not isinstance(usage, str):
            raise TypeError("flag usage must be a string")
        if not all(callable(getattr(value, method, None)) for method in ("get", "set", "reset")):
            raise TypeError("flag value must provide get(), set() and reset()")

        flag = Flag(name, coalesce(shorthand), usage, value, coalesce(default, str(value)))
        self._formal[name] = flag
        if flag.shorthand:
            self._shorthands[flag.shorthand] = flag
        return flag

    def boolean(self, name, /, shorthand=Unset, default=False, usage=""):
        return self.var(BoolValue(default), name, shorthand, usage)

    def option(self, name, /, shorthand=Unset, type=str, default=None, usage=""):
        return self.var(TypedValue(type, default), name, shorthand, usage)

    def lookup(self, name, /):
        return self._formal.get(name)

    def __getitem__(self, name, /):
        return self._formal[name].value.get()

    def __contains__(self, name, /):
        return name in self._formal

    def __iter__(self):
        return iter(sorted(self._formal.values(), key=lambda flag: flag.name))

    def __len__(self):
        return len(self._formal)

    def mark_hidden(self, name, /, hidden=True):
        try:
            self._formal[name]._hidden = bool(hidden)
        except KeyError:
            raise KeyError(f"flag {name!r} does not exist") from None

    def set(self, name, text, /):
        """Assign `text` to a flag as if it was given on the command line."""
        try:
            flag = self._formal[name]
        except KeyError:
            raise KeyError(f"flag {name!r} does not exist") from None
        self._assign(flag, text, "--" + name)

    def changed(self, name, /):
        try:
            return self._formal[name].changed
        except KeyError:
            raise KeyError(f"flag {name!r} does not exist") from None

    def reset(self):
        """Restore every value to its default and forget the last positionals."""
        for flag in self._formal.values():
            flag.value.reset()
            flag._changed = False
        self._arguments.clear()
        self._offsets.clear()

    def defaults(self):
        """
        Render the defaults table for visible flags, one line per flag.

        layout
        - "  -x, --name" when a shorthand exists, "      --name" otherwise.
        - value-bearing flags append their type name.
        - usages align three columns after the widest name column.
        - non-zero defaults append " (default X)" (strings are quoted).
        """
        rows = []
        for flag in self:
            if flag.hidden:
                continue
            left = f"  -{flag.shorthand}, --{flag.name}" if flag.shorthand else f"      --{flag.name}"
            if flag.value.implicit is None:
                left += " " + flag.value.typename
            right = flag.usage
            if not _iszero(flag):
                right += ' (default "%s")' % flag.default if flag.value.typename == "str" else " (default %s)" % flag.default
            rows.append((left, right))
        if not rows:
            return ""
        widest = max(len(left) for left, _ in rows)
        return "".join(f"{left.ljust(widest)}   {right}\n" for left, right in rows)

    def parse(self, arguments, /):
        """
        Parse argv-like tokens, storing flag values and collecting positionals.

        Raises
        - HelpRequested: "-h"/"--help" given but not defined.
        - UnknownSwitchError: unknown flag and not tolerant.
        - MalformedTokenError: "---x", "--=x" and similar.
        - OptionValueRequiredError: value-bearing flag without a value.
        - FlagAssignmentError / InvalidValueError: value rejected by its converter.
        """
        self._arguments.clear()
        self._offsets.clear()
        tokens = deque(enumerate(arguments))
        if not all(isinstance(token, str) for _, token in tokens):
            raise TypeError("parse() argument must be an iterable of strings")
        while tokens:
            index, token = tokens.popleft()
            if token == "--":
                for index, token in tokens:
                    self._arguments.append(token)
                    self._offsets.append(index)
                break
            if len(token) < 2 or not token.startswith("-"):
                self._arguments.append(token)
                self._offsets.append(index)
            elif token.startswith("--"):
                self._parse_long(token, tokens)
            else:
                self._parse_short(token, tokens)

    def _parse_long(self, token, tokens):
        name, sep, value = token[2:].partition("=")
        if not name or name[0] in "-=":
            raise MalformedTokenError(
                "bad flag syntax %r" % token,
                title="malformed option or flag",
                code=FaultCode.MALFORMED_TOKEN,
                hint="spell long flags as --name or --name=value",
                input=token,
            )

        if (flag := self._formal.get(name)) is None:
            if name == "help":
                self.print_usage()
                raise HelpRequested()
            if not self._tolerant:
                raise self._unknown(token)
            # an unknown flag may carry a spaced value; drop it along with the flag
            if not sep and tokens and not tokens[0][1].startswith("-"):
                tokens.popleft()
            return

        if sep:
            self._assign(flag, value, token)
        elif flag.value.implicit is not None:
            self._assign(flag, flag.value.implicit, token)
        elif tokens:
            self._assign(flag, tokens.popleft()[1], token)
        else:
            raise self._missing(token)

    def _parse_short(self, token, tokens):
        shorthands = token[1:]
        while shorthands:
            char, rest = shorthands[0], shorthands[1:]
            if (flag := self._shorthands.get(char)) is None:
                if char == "h":
                    self.print_usage()
                    raise HelpRequested()
                if not self._tolerant:
                    raise self._unknown("-" + char)
                if rest.startswith("="):
                    return
                # the rest of the cluster keeps parsing; a bare next token is still dropped
                if tokens and not tokens[0][1].startswith("-"):
                    tokens.popleft()
                shorthands = rest
                continue

            if rest.startswith("="):
                return self._assign(flag, rest[1:], "-" + char)
            if flag.value.implicit is not None:
                self._assign(flag, flag.value.implicit, "-" + char)
                shorthands = rest
            elif rest:
                return self._assign(flag, rest, "-" + char)
            elif tokens:
                return self._assign(flag, tokens.popleft()[1], "-" + char)
            else:
                raise self._missing("-" + char)

    def _assign(self, flag, text, input):
        try:
            flag.value.set(text)
        except (ValueError, TypeError):
            if isinstance(flag.value, BoolValue):
                raise FlagAssignmentError(
                    "invalid argument %r for %r flag" % (text, input),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    hint="use %s alone, or %s=true / %s=false" % (input, input, input),
                    input=input,
                ) from None
            raise InvalidValueError(
                "invalid argument %r for %r flag" % (text, input),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                hint="%s expects a value of type %s" % (input, flag.value.typename),
                input=input,
            ) from None
        flag._changed = True

    def _unknown(self, input):
        return UnknownSwitchError(
            "unknown flag: %s" % input,
            title="unknown option or flag",
            code=FaultCode.UNKNOWN_SWITCH,
            hint="try '%s --help' to see all available options" % self._name,
            input=input,
        )

    def _missing(self, input):
        return OptionValueRequiredError(
            "flag needs an argument: %s" % input,
            title="option value required",
            code=FaultCode.OPTION_VALUE_REQUIRED,
            hint="pass a value after a space or an '=' (for example: %s=<value>)" % input,
            input=input,
        )


__all__ = (
    "BoolValue",
    "TypedValue",
    "Flag",
    "FlagSet",
)
