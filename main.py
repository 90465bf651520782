from rich.pretty import pprint

from commandeer import *

cli = Dispatcher("demo", descr="commandeer demo program", version=lambda: "demo 0.1.0")


@cli.command
def greet(cli, name, arguments):
    """say hello"""
    flags = FlagSet(name, console=cli.console)
    flags.option("name", "n", default="world", usage="who to greet")
    cli.ignore_global_options(flags, ["help"])
    flags.parse(arguments)
    cli.log.printf("hello, %s", flags["name"])
    cli.dbg.print("flags:", list(flags))


@cli.command(name="show")
def show_commands(cli, name, arguments):
    """pretty-print the command table"""
    pprint(cli.commands)


if __name__ == '__main__':
    raise SystemExit(cli.main())
