"""
Commandeer dispatcher: global flags, the command table, and the run policy.

What this module provides
- Dispatcher: owns a tolerant FlagSet with the six global flags, a table of
  named commands, and two Loggers (`log` and `dbg`) whose verbosity follows the
  flags on every parse.

Run policy (one invocation)
1. parse the global flags; unknown flags are left to the subcommand.
2. --silent implies --quiet and --no-banner.
3. log is verbose unless --quiet; dbg is quiet unless --debug. --debug is
   checked first: with --debug the --quiet demotion of log is skipped.
4. --version prints the version and wins over any parse fault; otherwise the
   resolved command runs; otherwise usage is printed.
5. the banner follows unless --no-banner was given and nothing failed.
6. a trailing blank line closes the output; the pending fault is re-raised.

All framework text goes to the dispatcher's console (stderr by default), so
command output on stdout stays separable.

Quick start
    from commandeer import Dispatcher

    cli = Dispatcher("tool", descr="does tool things", version=lambda: "tool 1.0")

    @cli.command(descr="say hello")
    def greet(cli, name, arguments):
        print("hello", *arguments)

    if __name__ == "__main__":
        raise SystemExit(cli.main())
"""
import copy
import difflib
import os.path
import shlex
import sys
from collections import defaultdict
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .commands import *
from .faults import *
from .flags import *
from .logger import Logger
from .utils import *


def _tokenize(prompt):
    """
    Normalize a prompt into a list of tokens.

    - Unset: sys.argv[1:].
    - str: split with shlex.split.
    - Iterable[str]: used as-is (each element must be a string).
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("arguments must be a string or an iterable of strings")
        return tokens
    raise TypeError("arguments must be a string or an iterable of strings")


class Dispatcher:
    """
    Top-level object routing `<name> <command> [options]` invocations.

    Parameters
    - name: program name shown in usage; defaults to basename(sys.argv[0]).
    - descr: text printed above the usage line (omitted when empty).
    - version: callable returning the version string, or None. When None the
      --version flag is hidden and prints "unknown version".
    - banner: callable invoked after the run, or None. When None the --no-banner
      flag is hidden.
    - console: rich Console for framework output; defaults to stderr.
    - log, dbg: Loggers to drive; default to fresh ones on `console`.
    - colorful, fancy: rendering options for usage and faults.

    Notes
    - version and banner may be changed between runs; flag visibility follows them
      on the next parse.
    - a Dispatcher is not safe for concurrent use.
    """

    commands = mirror("commands")

    def __init__(
            self,
            name=Unset,
            /,
            descr="",
            version=None,
            banner=None,
            *,
            console=Unset,
            log=Unset,
            dbg=Unset,
            colorful=False,
            fancy=False
    ):
        name = coalesce(name, os.path.basename(sys.argv[0]))
        if not isinstance(name, str) or not name.strip():
            raise TypeError("dispatcher 'name' must be a non-empty string")
        if not isinstance(console, Console | Unset):
            raise TypeError("dispatcher 'console' must be a rich console")
        if not isinstance(log, Logger | Unset) or not isinstance(dbg, Logger | Unset):
            raise TypeError("dispatcher 'log' and 'dbg' must be loggers")

        self._name = name.strip()
        self._console = Console(stderr=True) if console is Unset else console
        self._log = Logger(self._console, verbose=True) if log is Unset else log
        self._dbg = Logger(self._console) if dbg is Unset else dbg
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._commands = {}

        self.descr = descr
        self.version = version
        self.banner = banner

        self._flags = FlagSet(self._name, tolerant=True, console=self._console)
        self._flags.boolean("version", "v", usage="prints the version of this program")
        self._flags.boolean("help", "h", usage="prints help about a command")
        self._flags.boolean("debug", usage="prints extra debug information for selected commands")
        self._flags.boolean("no-banner", usage="suppresses the banner text after this program runs")
        self._flags.boolean("quiet", usage="suppresses all output except errors and banner")
        self._flags.boolean("silent", usage="suppresses all output except errors")

    def __repr__(self):
        return f"dispatcher(name={self._name!r}, commands={sorted(self._commands)!r})"

    @property
    def name(self):
        return self._name

    @property
    def descr(self):
        return self._descr

    @descr.setter
    def descr(self, descr):
        if not isinstance(descr, str):
            raise TypeError("dispatcher 'descr' must be a string")
        self._descr = descr

    @property
    def version(self):
        return self._version

    @version.setter
    def version(self, version):
        if version is not None and not callable(version):
            raise TypeError("dispatcher 'version' must be callable or None")
        self._version = version

    @property
    def banner(self):
        return self._banner

    @banner.setter
    def banner(self, banner):
        if banner is not None and not callable(banner):
            raise TypeError("dispatcher 'banner' must be callable or None")
        self._banner = banner

    @property
    def flags(self):
        return self._flags

    @property
    def args(self):
        """Positional arguments of the last parse; the first one names the command."""
        return self._flags.args

    @property
    def console(self):
        return self._console

    @property
    def log(self):
        return self._log

    @property
    def dbg(self):
        return self._dbg

    def register(self, name, command, /):
        """
        Add a command under `name`.

        Registering the same name twice is a programming error and raises
        ValueError; command tables are expected to be fixed at setup time.
        """
        if not isinstance(name, str):
            raise TypeError("command name must be a string")
        elif not name or name.startswith("-") or any(char.isspace() for char in name):
            raise ValueError(f"command name {name!r} must be a non-empty word not starting with '-'")
        if not isinstance(command, SupportsCommand):
            raise TypeError("command must provide a 'descr' string and a run() method")
        if name in self._commands:
            raise ValueError(f"command {name!r} already exists")
        self._commands[name] = command

    def command(self, source=Unset, /, name=Unset, descr=Unset):
        """
        Build a Command from a handler and register it.

        Forms
        - @cli.command
        - @cli.command(name="build", descr="...")

        The name defaults to the handler's __name__ with '_' replaced by '-'.
        Returns the registered Command.
        """
        @rename("command")
        def wrapper(source, /):
            if not callable(source):
                raise TypeError("@command() must be applied to a callable")
            built = Command(source, descr)
            self.register(coalesce(name, source.__name__.replace("_", "-")), built)
            return built

        return wrapper(source) if source is not Unset else wrapper

    def parse(self, arguments, /):
        """
        Parse global flags and resolve the command named by the first positional.

        Side effects
        - flag state is reset, then set from `arguments`.
        - log/dbg verbosity is reconfigured from the flags.

        Returns
        - the resolved command.

        Raises
        - a flag fault (e.g. FlagAssignmentError) for malformed values of known flags.
        - HelpRequested: no positionals, or --help given (carries the command if found).
        - UnknownCommandError: the first positional names no registered command.
        """
        tokens = _tokenize(arguments)

        self._flags.reset()
        self._flags.mark_hidden("no-banner", self._banner is None)
        self._flags.mark_hidden("version", self._version is None)

        fault = None
        try:
            self._flags.parse(tokens)
        except CommandException as exception:
            fault = exception

        if self._flags["silent"]:
            self._flags.set("quiet", "true")
            self._flags.set("no-banner", "true")

        self._log.set_verbose()
        self._dbg.set_quiet()
        if self._flags["debug"]:
            self._dbg.set_verbose()
        elif self._flags["quiet"]:
            self._log.set_quiet()

        if fault is not None:
            raise fault

        if not self._flags.args:
            raise HelpRequested()

        input = self._flags.args[0]
        command = self._commands.get(input)
        if self._flags["help"]:
            raise HelpRequested(command, input)
        if command is None:
            suggestions = difflib.get_close_matches(input, self._commands.keys(), 5)
            try:
                hint = "did you mean %r? you can also run '%s --help' to see available commands" % (
                    suggestions[0], self._name
                )
            except IndexError:
                hint = "run '%s --help' to see available commands" % self._name
            raise UnknownCommandError(
                "command not recognized: %s" % input,
                title="unknown command",
                code=FaultCode.UNKNOWN_COMMAND,
                hint=hint,
                input=input,
                suggestions=suggestions,
            )
        return command

    def run(self, arguments=Unset, /):
        """
        Parse, dispatch, and apply the version/usage/banner policy.

        Parameters
        - arguments: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.

        Behavior
        - --version: writes the version (no newline) and clears any parse fault.
        - resolved command: runs it with the raw tokens after the command token;
          whatever it raises becomes the outcome.
        - otherwise: prints usage.
        - banner, then a trailing newline, are written before the outcome is raised.

        Raises
        - HelpRequested after usage was printed, UnknownCommandError, flag faults,
          or anything raised by the command.
        """
        tokens = _tokenize(arguments)

        command = fault = None
        try:
            command = self.parse(tokens)
        except HelpRequested as signal:
            command, fault = signal.command, signal
        except CommandException as exception:
            fault = exception

        if self._flags["version"]:
            self._write(self._version() if self._version is not None else "unknown version")
            fault = None
        elif command is not None:
            name, offset = self._flags.args[0], self._flags.offsets[0]
            try:
                command.run(self, name, tokens[offset + 1:])
            except Exception as exception:
                fault = exception
            else:
                fault = None
        else:
            self.usage()

        if self._banner is not None and (fault is not None or not self._flags["no-banner"]):
            self._write("\n")
            self._banner()
        self._write("\n")

        if fault is not None:
            raise fault

    def main(self, arguments=Unset, /):
        """
        Run and map the outcome to an exit status (the caller decides whether to exit).

        Returns
        - 0 on success or when usage was requested.
        - 1 when a CommandException was raised; it is rendered to the console first.

        Other exceptions propagate.
        """
        try:
            self.run(arguments)
        except HelpRequested:
            return 0
        except CommandException as fault:
            self._console.print(copy.replace(fault, prog=self._name, colorful=self._colorful, fancy=self._fancy))
            return 1
        return 0

    def usage(self):
        """
        Print the description, usage line, sorted command listing and global options.
        """
        styles = defaultdict(str, {
            "description-section": "italic #A3A3A3",  # Neutral gray
            "usage-label": "bold #00E6FF",  # Cyan headers
            "program-name": "bold #FF4D94",  # Magenta-pink brand pop
            "children": "bold #36C5F0",  # Sky-blue commands
            "children-description": "#9CA3AF",  # Muted gray
        } | getattr(__import__("__main__"), "__styles__", {}))

        def text(fragment, style):
            return Text(fragment, styles[style] if self._colorful else "")

        usage = Text()
        if self._descr:
            usage.append(text(self._descr, "description-section")).append("\n\n")
        usage.append(text("Usage:", "usage-label")).append("\n\n      ")
        usage.append(text(self._name, "program-name")).append(" <command> [options]\n\n")
        usage.append(text("Available commands:", "usage-label")).append("\n\n")
        for name in sorted(self._commands):
            usage.append("      ").append(text("%-13s" % name, "children"))
            if descr := self._commands[name].descr:
                usage.append(" ").append(text(descr, "children-description"))
            usage.append("\n")
        self._write(usage)
        self.print_global_options()

    def print_global_options(self):
        self._write("\nGlobal options:\n\n")
        self._write(self._flags.defaults())

    def ignore_global_options(self, flags, /, exclude=()):
        """
        Let a subcommand's FlagSet accept the global flags without listing them.

        Every global flag not named in `exclude` is defined on `flags` with the same
        name, usage and default, sharing the same value object, and hidden. Names in
        `exclude` are skipped so the subcommand can define its own (e.g. "help").
        """
        if not isinstance(flags, FlagSet):
            raise TypeError("ignore_global_options() argument must be a flag set")
        if isinstance(exclude, str) or not isinstance(exclude, Iterable):
            raise TypeError("ignore_global_options() 'exclude' must be an iterable of flag names")
        exclude = set(exclude)
        if not all(isinstance(name, str) for name in exclude):
            raise TypeError("ignore_global_options() 'exclude' must contain strings only")

        for flag in self._flags:
            if flag.name in exclude:
                continue
            flags.var(flag.value, flag.name, usage=flag.usage, default=flag.default)
            flags.mark_hidden(flag.name)

    def _write(self, renderable):
        self._console.print(renderable, end="", soft_wrap=True, highlight=False, markup=False, emoji=False)


__all__ = (
    "Dispatcher",
)
