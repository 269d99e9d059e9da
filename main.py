import sys

from rich.pretty import pprint

from clic import *

MAIN, GREET = 0, 1

if __name__ == '__main__':
    verbose = Variable(0)
    color = Variable()
    name = Variable()

    parser = Parser(shell=True)
    parser.init("demo", "1.0.0", "GPLv3", "Dumb program showcasing clic", unnamed=True)
    parser.add_subcommand(GREET, "greet", "say hello to someone")
    parser.add_param_flag(MAIN, "v", "increase verbosity", verbose)
    parser.add_param_bool(MAIN, "color", "colorize output", 1, color)
    parser.add_arg_string(GREET, "name", "who to greet", name)

    scope = Variable()
    arguments = sys.argv[1 + parser.parse(subcommand=scope):]

    if scope.value == GREET:
        print("Hello, %s!" % name.value)
    else:
        print("Verbosity is %s." % ("high" if verbose.value else "low"))
        pprint(dict(enumerate(arguments, 1)) if verbose.value else arguments)
