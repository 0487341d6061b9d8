"""
Help and version rendering tests.

Scope
- Usage lines: global usage for the root, synthesized usage elsewhere.
- Commands table: every descendant in registration order, default marker.
- Option sections: own options first, then inherited ones, with defaults and
  bound environment variables.
- Version output and the fancy panel.

Conventions
- Test method names follow CamelCase per project convention.
- Output is rendered into a fixed-width console without colors.
"""
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argtree import Parser
from argtree.renderers import helper, versioner


def tree(**flags):
    parser = Parser(
        "traffic_blabla",
        "tree-shaped demo",
        version="1.2.3",
        license="MIT",
        homepage="https://example.invalid/traffic",
        copyright="(c) traffic authors",
        shell=False,
        **flags
    )
    parser.add_global_usage("traffic_blabla [--SWITCH]")
    parser.add_option("--globalx", "-x", "global switch x", nargs=2)
    parser.add_option("--globaly", "-y", "global switch y", default="foo bar", nargs="*")
    parser.add_option("--token", None, "api token", envvar="TRAFFIC_TOKEN")

    init = parser.add_command("init", "initialize traffic blabla", nargs=1)
    init.add_option("--initoption", "-i", "init option")
    init.add_command("subinit", "sub initialize", nargs=2)
    init.add_example_usage("traffic_blabla init demo --initoption")

    remove = parser.add_command("remove", "remove traffic blabla")
    remove.add_command("subremove").set_default()
    parser.require_commands()
    return parser


def render(renderable):
    file = io.StringIO()
    Console(file=file, width=100).print(renderable)
    return file.getvalue()


class TestHelp(TestCase):
    """Help content for the root and for subcommands."""

    def setUp(self):
        self.parser = tree()
        self.root = self.parser.root
        self.init = self.root.children["init"]
        self.console = Console(file=io.StringIO(), width=100)

    def help(self, command):
        return render(helper(self.parser, command, console=self.console))

    def testRootUsesGlobalUsage(self):
        output = self.help(self.root)
        self.assertIn("usage: traffic_blabla [--SWITCH]", output)
        self.assertIn("tree-shaped demo", output)

    def testCommandsTable(self):
        output = self.help(self.root)
        self.assertIn("commands", output)
        for name in ("init", "subinit", "remove", "subremove"):
            with self.subTest(name=name):
                self.assertIn(name, output)
        self.assertIn("subremove (default)", output)
        self.assertIn("no description", output)
        self.assertLess(output.index("init"), output.index("remove"))

    def testRootOptions(self):
        output = self.help(self.root)
        self.assertIn("options:", output)
        self.assertIn("-h, --help", output)
        self.assertIn("-x, --globalx <value> <value>", output)
        self.assertIn("-y, --globaly [<value> ...]", output)
        self.assertIn("(default: foo bar)", output)
        self.assertIn("[env: TRAFFIC_TOKEN]", output)

    def testSynthesizedUsage(self):
        output = self.help(self.init)
        self.assertIn("usage: traffic_blabla init [-i, --initoption] <value> [<command>]", output)
        self.assertIn("initialize traffic blabla", output)

    def testInheritedOptions(self):
        output = self.help(self.init)
        self.assertIn("subcommands", output)
        self.assertIn("traffic_blabla options:", output)
        self.assertLess(output.index("-i, --initoption"), output.index("traffic_blabla options:"))
        self.assertLess(output.index("traffic_blabla options:"), output.index("--globalx"))

    def testExampleUsage(self):
        output = self.help(self.init)
        self.assertIn("example:", output)
        self.assertIn("traffic_blabla init demo --initoption", output)

    def testLeafHasNoCommandsTable(self):
        output = self.help(self.init.children["subinit"])
        self.assertIn("usage: traffic_blabla init subinit <value> <value>", output)
        self.assertNotIn("subcommands", output)
        self.assertIn("init options:", output)

    def testFancyPanel(self):
        parser = tree(fancy=True)
        output = render(helper(parser, parser.root.children["init"], console=self.console))
        self.assertIn("INIT HELP", output)
        self.assertIn("(c) traffic authors", output)

    def testParserHelperDefaultsToRoot(self):
        file = io.StringIO()
        with mock.patch("sys.stdout", file):
            self.parser.helper()
        self.assertIn("usage: traffic_blabla [--SWITCH]", file.getvalue())


class TestVersion(TestCase):
    """Version content."""

    def testVersionLines(self):
        parser = tree()
        output = render(versioner(parser))
        self.assertIn("traffic_blabla — 1.2.3", output)
        self.assertIn("license: MIT", output)
        self.assertIn("homepage: https://example.invalid/traffic", output)
        self.assertIn("copyright: (c) traffic authors", output)

    def testMissingVersion(self):
        parser = Parser("tool", shell=False)
        self.assertIn("tool — 0.0.0", render(versioner(parser)))

    def testFancyVersion(self):
        parser = tree(fancy=True)
        self.assertIn("TRAFFIC_BLABLA VERSION", render(versioner(parser)))


class TestShow(TestCase):
    """Tree overview of a parser."""

    def testShowListsCommandsAndOptions(self):
        file = io.StringIO()
        tree().show(console=Console(file=file, width=100))
        output = file.getvalue()
        self.assertIn("traffic_blabla", output)
        self.assertIn("subinit", output)
        self.assertIn("-y, --globaly", output)
        self.assertIn("default='foo bar'", output)
        self.assertIn("(required subcommand)", output)


if __name__ == "__main__":
    unittest.main()
