"""
Argtree parser: the entry point owning the command tree, and the parse engine.

Parser
- Owns the root Command (with automatic --help/-h and --version/-V options)
  and the program metadata shown by help/version.
- parse(argv) normalizes argv, validates the tree, runs one Engine over a
  working copy of the tokens and returns Arguments.
- Every input error, help request and version request raised by the engine
  propagates up to parse(), which hands it to trigger() exactly once:
  • shell=True (default): print help and the fault on stderr and exit 1, or
    print help/version on stdout and exit 0.
  • shell=False: raise the fault (or interrupt) to the caller.

Engine (one per parse call, no state survives it)
1. The root matches argv[0]; its token is removed.
2. The node's own options are resolved over the tail of the token list:
   `--long=value` (value after the last '='), exact long/short forms followed
   by their values, --help/--version anywhere. Undeclared tokens are left for
   descendants. Defaults fill the options left untouched.
3. The node's positional values are consumed at its position, unless the token
   there names one of its children (the values are then skipped).
4. The node is recorded (with its environment variable) and its action bound.
5. The first child whose name is present is matched next; a default child runs
   when none is, and a required subcommand is enforced.
Tokens left once the root returns are an error.

Variadic values stop at structural tokens: declared option forms, `--long=` forms,
and names of commands in the tree. Exact option values are taken as-is even when
they start with '-'; exact command values are not.
"""
import os.path
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .arguments import ArityKind, _sanitize_strings
from .commands import Command, walk
from .faults import *
from .renderers import helper, versioner
from .results import ArgumentRecord, Arguments
from .utils import *
from .utils import SpecType

HELP = ("--help", "-h")
VERSION = ("--version", "-V")


def _progname(path, /):
    """
    A valid command name derived from a program path ("python -m x" -> "python").
    """
    name = next(iter(os.path.basename(path).split()), "").lstrip("-")
    return name or "program"


def _route(command, /):
    return " ".join(step.name for step in command.path)


def _quantity(nargs, /):
    match nargs.kind:
        case ArityKind.AT_LEAST_ONE:
            return "one or more values"
        case ArityKind.ZERO_OR_MORE:
            return "any number of values"
    return "%d %s" % (nargs.count, "value" if nargs.count == 1 else pluralize("value"))


class Engine:
    """
    Single-use matcher of one argument vector against a command tree.
    """

    def __init__(self, parser, argv, /):
        self._parser = parser
        self._tokens = list(argv)
        self._records = {}
        self._action = None
        self._deepest = parser.root
        self._forms = set()
        self._names = set()
        for command in walk(parser.root):
            if command.parent is not None:
                self._names.add(command.name)
            for option in command.options.values():
                self._forms.update(option.names)

    @property
    def deepest(self):
        """
        Deepest command matched so far (the help context of a fault).
        """
        return self._deepest

    def run(self):
        self._match(self._parser.root, 0)
        if self._tokens:
            raise UnparsedTokensError(
                "unknown command, option or args: %s" % ", ".join(map(repr, self._tokens)),
                title="unknown command, option or args",
                code=FaultCode.UNPARSED_TOKENS,
                hint="run '%s --help' to see what it accepts" % _route(self._deepest),
                tokens=tuple(self._tokens),
                command=self._deepest,
                docs=getdoc(FaultCode.UNPARSED_TOKENS)
            )
        return Arguments(self._records, self._action)

    def _structural(self, token):
        if token in self._forms or token in self._names:
            return True
        name, equals, _ = token.partition("=")
        return bool(equals) and name.startswith("--") and name in self._forms

    def _match(self, command, index, /, *, implicit=False):
        if not implicit:
            del self._tokens[index]
        self._deepest = command

        self._scan(command, index)
        # A subcommand right after the name routes past this command's own values.
        if index < len(self._tokens) and self._tokens[index] in command.children:
            values = ()
        else:
            values = self._take(command, command.nargs, index)

        envvar = command.envvar
        self._records[command.key] = ArgumentRecord(values, os.environ.get(envvar) if envvar else None, called=True)
        if (action := command.action) is not None:
            self._action = action

        self._descend(command, index)

    def _scan(self, command, index, /):
        matched = set()
        cursor = index
        while cursor < len(self._tokens):
            token = self._tokens[cursor]

            if token.startswith("--") and "=" in token:
                name, value = token[:token.index("=")], token[token.rindex("=") + 1:]
                if (option := command.lookup(name)) is None:
                    cursor += 1
                    continue
                if command.parent is None and option.long in (HELP[0], VERSION[0]):
                    self._interrupt(option)
                if not value:
                    raise MissingInlineValueError(
                        "missing argument for %r in %r" % (name, token),
                        title="missing inline value",
                        code=FaultCode.MISSING_INLINE_VALUE,
                        hint="add a value after '=' (for example: %s=<value>)" % name,
                        token=token,
                        command=command,
                        docs=getdoc(FaultCode.MISSING_INLINE_VALUE)
                    )
                if option.nargs.variadic or option.nargs.count != 1:
                    raise InlineArityError(
                        "option %r takes %s, it cannot be given as %r" % (name, _quantity(option.nargs), token),
                        title="inline value not accepted",
                        code=FaultCode.INLINE_ARITY_MISMATCH,
                        hint="pass the values after a space (for example: %s <value>)" % name,
                        token=token,
                        command=command,
                        docs=getdoc(FaultCode.INLINE_ARITY_MISMATCH)
                    )
                del self._tokens[cursor]
                values = (value,)
            elif (option := command.lookup(token)) is not None:
                if command.parent is None and option.long in (HELP[0], VERSION[0]):
                    self._interrupt(option)
                del self._tokens[cursor]
                values = self._take(command, option.nargs, cursor, option=option)
            else:
                cursor += 1
                continue

            if option.key in matched:
                self._parser.trigger(RepeatedOptionWarning(
                    "option %r was given more than once, the last one wins" % option.long,
                    title="repeated option",
                    code=FaultCode.REPEATED_OPTION,
                    hint="pass %r a single time" % option.long,
                    command=command,
                    docs=getdoc(FaultCode.REPEATED_OPTION)
                ))
            matched.add(option.key)
            envvar = option.envvar
            self._records[option.key] = ArgumentRecord(values, os.environ.get(envvar) if envvar else None, called=True)

        for option in command.options.values():
            if option.key not in matched and option.defaults:
                self._records[option.key] = ArgumentRecord(option.defaults)

        if command.requires_options and not matched:
            raise MissingOptionError(
                "no option found for %r" % _route(command),
                title="missing option",
                code=FaultCode.MISSING_OPTION,
                hint="'%s' needs at least one of: %s" % (_route(command), ", ".join(command.options)),
                command=command,
                docs=getdoc(FaultCode.MISSING_OPTION)
            )

    def _interrupt(self, option, /):
        if option.long == VERSION[0]:
            raise VersionRequested(command=self._parser.root)
        command = self._parser.root
        for token in self._tokens:
            if (child := command.children.get(token)) is not None:
                command = child
        raise HelpRequested(command=command)

    def _take(self, command, nargs, index, /, *, option=None):
        """
        Remove and return the values of a command (strict) or an option at index.
        """
        strict = option is None
        owner = "command %r" % _route(command) if strict else "option %r" % option.long

        if nargs.variadic:
            values = []
            while index < len(self._tokens):
                token = self._tokens[index]
                if self._structural(token) or (strict and token.startswith("-")):
                    break
                values.append(self._tokens.pop(index))
            if nargs.kind is ArityKind.AT_LEAST_ONE and not values:
                raise AtLeastOneValueRequiredError(
                    "missing argument for %s, at least one value is required" % owner,
                    title="at least one value required",
                    code=FaultCode.AT_LEAST_ONE_VALUE_REQUIRED,
                    hint="run '%s --help' to see what it accepts" % _route(command),
                    command=command,
                    docs=getdoc(FaultCode.AT_LEAST_ONE_VALUE_REQUIRED)
                )
            return tuple(values)

        values = []
        for token in self._tokens[index:index + nargs.count]:
            if not token or (strict and token.startswith("-")):
                break
            values.append(token)

        if len(values) < nargs.count:
            raise NotEnoughValuesError(
                "missing argument for %s, expected %s but got %d" % (owner, _quantity(nargs), len(values)),
                title="not enough values",
                code=FaultCode.NOT_ENOUGH_VALUES,
                hint="run '%s --help' to see what it accepts" % _route(command),
                command=command,
                docs=getdoc(FaultCode.NOT_ENOUGH_VALUES)
            )
        del self._tokens[index:index + nargs.count]
        return tuple(values)

    def _descend(self, command, index, /):
        children = command.children

        if len(present := [name for name in children if name in self._tokens]) > 1:
            raise MultipleCommandsError(
                "multiple commands found: %s" % ", ".join(map(repr, present)),
                title="multiple commands",
                code=FaultCode.MULTIPLE_COMMANDS,
                hint="'%s' runs one subcommand at a time" % _route(command),
                names=tuple(present),
                command=command,
                docs=getdoc(FaultCode.MULTIPLE_COMMANDS)
            )

        if present:
            name, = present
            return self._match(children[name], self._tokens.index(name))

        if command.default is not None:
            return self._match(children[command.default], index, implicit=True)

        if command.requires_commands:
            raise MissingSubcommandError(
                "no subcommand found for %r" % _route(command),
                title="missing subcommand",
                code=FaultCode.MISSING_SUBCOMMAND,
                hint="choose one of: %s" % ", ".join(children),
                command=command,
                docs=getdoc(FaultCode.MISSING_SUBCOMMAND)
            )


class Parser(metaclass=SpecType):
    """
    Top-level argument parser owning a command tree.

    Properties
    - name, descr, key: the root command's (the name follows argv[0] after a parse).
    - usage, version, license, homepage, copyright: presentation metadata.
    - root: the root Command.
    - shell, fancy, colorful: runtime flags (exit vs raise, panel chrome, colors).
    """

    __introspectable__ = (
        "usage",
        "version",
        "license",
        "homepage",
        "copyright",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "name",
        "version",
        "root",
        "shell",
        "fancy",
        "colorful",
    )

    def __new__(
            cls,
            name=Unset,
            descr=Unset,
            /,
            usage=Unset,
            version=Unset,
            license=Unset,
            homepage=Unset,
            copyright=Unset,
            key=Unset,
            envvar=Unset,
            nargs=0,
            action=Unset,
            *,
            shell=True,
            fancy=False,
            colorful=False
    ):
        """
        Create a parser and its root command.

        Parameters
        - name: str, program name (defaults to the base name of sys.argv[0]).
        - descr: str | Text, program description.
        - usage: str | Text, global usage line shown by the root help.
        - version, license, homepage, copyright: shown by --version.
        - key: str, lookup key of the root record (defaults to the name).
        - envvar: str, environment variable captured when the root matches.
        - nargs: int | "+" | "*" | Arity, positional values taken by the root.
        - action: callable bound when the root matches.
        - shell: bool, print and exit on faults/help/version instead of raising.
        - fancy: bool, wrap help, version and faults in panels.
        - colorful: bool, apply the palette.
        """
        metadata = {
            "usage": usage,
            "version": version,
            "license": license,
            "homepage": homepage,
            "copyright": copyright,
        }
        _sanitize_strings(cls, metadata, *metadata, texts=tuple(metadata))

        self = super().__new__(cls)
        for field, object in metadata.items():
            setattr(self, "_" + field, object)
        self._root = Command(
            coalesce(name, _progname(sys.argv[0])),
            descr,
            envvar=envvar,
            nargs=nargs,
            action=action,
            key=key
        )
        self._root.add_option(*HELP, "show this help message and exit")
        self._root.add_option(*VERSION, "show the version message and exit")
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        return self

    @property
    def root(self):
        return self._root

    @property
    def name(self):
        return self._root.name

    @property
    def descr(self):
        return self._root.descr

    @property
    def key(self):
        return self._root.key

    def add_option(self, long, short=Unset, descr=Unset, /, envvar=Unset, nargs=0, default=Unset, key=Unset):
        """
        Declare a global option on the root command; returns the parser.
        """
        self._root.add_option(long, short, descr, envvar=envvar, nargs=nargs, default=default, key=key)
        return self

    def add_command(self, name, descr=Unset, /, envvar=Unset, nargs=0, action=Unset, key=Unset, usage=Unset):
        """
        Attach a top-level command and return it.
        """
        return self._root.add_command(name, descr, envvar=envvar, nargs=nargs, action=action, key=key, usage=usage)

    def require_commands(self):
        self._root.require_commands()
        return self

    def require_options(self):
        self._root.require_options()
        return self

    def add_global_usage(self, usage, /):
        metadata = {"usage": usage}
        _sanitize_strings(type(self), metadata, "usage", texts=("usage",))
        self._usage = metadata["usage"]
        return self

    def add_example_usage(self, usage, /):
        self._root.add_example_usage(usage)
        return self

    def validate(self):
        """
        Re-check the tree: unique keys everywhere, unique option forms per ancestor chain.

        Raises ValueError on the first violation.
        """
        owners = {}
        for command in walk(self._root):
            for key in (command.key, *(option.key for option in command.options.values())):
                if key in owners:
                    raise ValueError(
                        f"{type(self).__typename__} key {key!r} is used by both "
                        f"{owners[key].name!r} and {command.name!r}"
                    )
                owners[key] = command
            for option in command.options.values():
                for ancestor in command.path[:-1]:
                    for form in option.names:
                        if ancestor.lookup(form) is not None:
                            raise ValueError(
                                f"{type(self).__typename__} option {form!r} of {command.name!r} "
                                f"shadows the one of {ancestor.name!r}"
                            )

    def parse(self, argv=Unset, /):
        """
        Parse an argument vector (program name first) into Arguments.

        - Unset: sys.argv.
        - str: split with shlex.split.
        - Iterable[str]: used as given.

        Input errors, help and version requests are handed to trigger(); in shell
        mode that ends the process, otherwise they are raised.
        """
        if argv is Unset:
            argv = list(sys.argv)
        elif isinstance(argv, str):
            argv = shlex.split(argv)
        elif isinstance(argv, Iterable):
            argv = list(argv)
            if not all(isinstance(token, str) for token in argv):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self.validate()
        engine = None
        try:
            if not argv:
                raise InvalidArgvError(
                    "the argument vector is empty",
                    title="invalid argument vector",
                    code=FaultCode.INVALID_ARGV,
                    hint="pass the program name first (for example: sys.argv)",
                    command=self._root,
                    docs=getdoc(FaultCode.INVALID_ARGV)
                )
            if name := os.path.basename(argv[0]):
                self._root._name = name
            engine = Engine(self, argv)
            return engine.run()
        except (CommandException, CommandInterrupt) as fault:
            if "command" not in fault.options and engine is not None:
                fault = fault.__replace__(command=engine.deepest)
            self.trigger(fault)
        raise RuntimeError("unreachable")

    def helper(self, command=Unset, /, *, stderr=False):
        """
        Print the help of command (the root by default).
        """
        console = Console(stderr=stderr)
        console.print(helper(self, coalesce(command, self._root), console=console))

    def versioner(self):
        console = Console()
        console.print(versioner(self, console=console))

    def show(self, *, console=None):
        """
        Print the whole tree with each command's arity, key and options.
        """
        def label(command):
            return Text.assemble(
                (command.name, "bold" if self.colorful else ""),
                f"  nargs={command.nargs} key={command.key}",
                f" env={command.envvar}" if command.envvar else "",
                " (required subcommand)" if command.requires_commands else "",
                " (required option)" if command.requires_options else "",
            )

        def grow(branch, command):
            for option in command.options.values():
                branch.add(Text.assemble(
                    ", ".join(option.names),
                    f"  nargs={option.nargs} key={option.key}",
                    f" default={option.default!r}" if option.default else "",
                    f" env={option.envvar}" if option.envvar else "",
                ))
            for child in command.children.values():
                grow(branch.add(label(child)), child)

        grow(tree := Tree(label(self._root)), self._root)
        (console or Console()).print(tree)

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this parser's runtime flags; errors get the help of
        their command on stderr first in shell mode.
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        fault = fault.__replace__(**options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)
        if self.shell and isinstance(fault, CommandException):
            self.helper(fault.options.get("command") or self._root, stderr=True)
        trigger(fault)


ArgParser = Parser


__all__ = (
    "Parser",
    "ArgParser",
    "Engine",
)
