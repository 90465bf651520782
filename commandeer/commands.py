"""
Commandeer command layer: the unit of behaviour a dispatcher routes to.

What this module provides
- SupportsCommand: runtime-checkable protocol. Anything exposing a `descr` string
  and `run(dispatcher, name, arguments)` can be registered.
- Command: function-backed implementation; wraps a handler and a description.
- command(...): build a Command directly or as a decorator.

Contract
- descr may be empty; empty descriptions are left out of the usage listing.
- run() forwards to the handler; whatever the handler raises propagates
  unchanged to the dispatcher.

Quick start
    from commandeer import Dispatcher, command

    @command(descr="say hello")
    def greet(cli, name, arguments):
        cli.log.print("hello", *arguments)

    cli = Dispatcher("tool")
    cli.register("greet", greet)
    cli.run(["greet", "world"])
"""
import inspect
from typing import Protocol, runtime_checkable

from .utils import *


@runtime_checkable
class SupportsCommand(Protocol):
    descr: str

    def run(self, cli, name, arguments): ...


class Command:
    """
    Immutable description + handler pair.

    The handler is called as handler(dispatcher, name, arguments), where name is
    the command token that selected it and arguments are the raw tokens after it.
    """

    descr = mirror("descr")
    handler = mirror("handler")

    def __init__(self, handler, /, descr=Unset):
        if not callable(handler):
            raise TypeError("command 'handler' must be callable")
        if not isinstance(descr, str | Unset):
            raise TypeError("command 'descr' must be a string")
        if descr is Unset:
            # first docstring line doubles as the listing description
            descr = next(iter((inspect.getdoc(handler) or "").splitlines()), "")
        self._descr = descr.strip()
        self._handler = handler  # assigned last: seals the instance

    def __repr__(self):
        return "command(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        yield "handler", getattr(self._handler, "__qualname__", self._handler)
        yield "descr", self._descr

    def __setattr__(self, name, value, /):
        if hasattr(self, "_handler"):
            raise AttributeError("command is read-only")
        super().__setattr__(name, value)

    def run(self, cli, name, arguments):
        return self._handler(cli, name, arguments)


def command(source=Unset, /, descr=Unset):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct:    cmd = command(func, descr="...")
    - Decorator: @command  /  @command(descr="...")
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, descr)

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "SupportsCommand",
    "Command",
    "command",
)
