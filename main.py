from rich.pretty import pprint

from conch import *

shell = Shell("demo", colorful=True)


@shell.command(descr="Reply with pong", args=[Argument("count", "how many pongs", "1")])
def ping(shell, args):
    args = ping.defaults(args)
    for _ in range(int(args["count"])):
        shell.console.print("pong")


@ping.completer
def _(shell, line, args):
    return complete_arguments(shell, ping, line, args)


@shell.command(descr="Show the parsed arguments", args=["first", "second"])
def echo(shell, args):
    pprint(args)


if __name__ == '__main__':
    with SignalManager() as signals:
        shell.run(signals=signals)
