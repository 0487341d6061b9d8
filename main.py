from rich.pretty import pprint

from argtree import *

parser = Parser(
    "traffic_blabla",
    "tree-shaped command line demo",
    version="0.1.0",
    license="MIT",
    colorful=True,
)
parser.add_global_usage("traffic_blabla [--SWITCH]")
parser.add_option("--globalx", "-x", "global switch x", nargs=2)
parser.add_option("--globaly", "-y", "global switch y", default="foo bar", nargs="*")

init = parser.add_command("init", "initialize traffic blabla", envvar="HOME", nargs=1, action=lambda: 0)
init.add_option("--initoption", "-i", "init option")
init.add_command("subinit", "sub initialize traffic blabla", nargs=2).add_option("--subinitopt", "-s", "sub init option")

remove = parser.add_command("remove", "remove traffic blabla")
remove.add_command("subremove", "sub remove traffic blabla").add_command("subsubremove", "sub sub remove")
remove.add_example_usage("traffic_blabla remove subremove subsubremove")

parser.require_commands()


if __name__ == '__main__':
    arguments = parser.parse()
    pprint(arguments)
    arguments.show()
