"""
Gated output sink.

A Logger writes through a rich Console only while it is verbose; fatal and panic
messages are always written. Every Dispatcher owns two of them: `log`, verbose by
default and silenced by --quiet/--silent, and `dbg`, quiet by default and enabled
by --debug.

Example
    >>> log = Logger(verbose=True, prefix="tool: ")
    >>> log.printf("loaded %d plugins", 3)
    >>> log.set_quiet()
    >>> log.print("dropped")  # gated, nothing is written
"""
import sys

from rich.console import Console

from .utils import Unset


class Logger:
    def __init__(self, console=Unset, /, verbose=False, prefix=""):
        if not isinstance(console, Console | Unset):
            raise TypeError("logger 'console' must be a rich console")
        if not isinstance(prefix, str):
            raise TypeError("logger 'prefix' must be a string")
        self._console = Console(stderr=True) if console is Unset else console
        self._verbose = bool(verbose)
        self._prefix = prefix

    def __repr__(self):
        return f"logger(verbose={self._verbose!r}, prefix={self._prefix!r})"

    @property
    def verbose(self):
        return self._verbose

    def set_verbose(self):
        self._verbose = True

    def set_quiet(self):
        self._verbose = False

    @property
    def console(self):
        return self._console

    def wrap(self, console, /):
        """Replace the underlying console; gating and prefix are kept."""
        if not isinstance(console, Console):
            raise TypeError("wrap() argument must be a rich console")
        self._console = console

    @property
    def file(self):
        return self._console.file

    def set_output(self, file, /):
        """Send further output to `file` through a fresh console."""
        self._console = Console(file=file)

    @property
    def prefix(self):
        return self._prefix

    def set_prefix(self, prefix, /):
        if not isinstance(prefix, str):
            raise TypeError("set_prefix() argument must be a string")
        self._prefix = prefix

    def _write(self, message):
        # a newline is appended unless the message already ends with one
        if not message.endswith("\n"):
            message += "\n"
        self._console.print(
            self._prefix + message, end="", markup=False, highlight=False, emoji=False, soft_wrap=True
        )

    def output(self, message, /):
        if self._verbose:
            self._write(message)

    def print(self, *objects, sep=" "):
        if self._verbose:
            self._write(sep.join(map(str, objects)))

    def printf(self, format, /, *args):
        if self._verbose:
            self._write(format % args if args else format)

    def fatal(self, *objects, sep=" "):
        """Write unconditionally, then exit the process with status 1."""
        self._write(sep.join(map(str, objects)))
        sys.exit(1)

    def fatalf(self, format, /, *args):
        self._write(format % args if args else format)
        sys.exit(1)

    def panic(self, *objects, sep=" "):
        """Write unconditionally, then raise RuntimeError with the same message."""
        self._write(message := sep.join(map(str, objects)))
        raise RuntimeError(message)

    def panicf(self, format, /, *args):
        self._write(message := format % args if args else format)
        raise RuntimeError(message)


__all__ = (
    "Logger",
)
