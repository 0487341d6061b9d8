"""
Argtree command tree: the static definition a parser walks.

What this module provides
- Command: one node of the tree. It holds a name users type literally, a lookup
  key for its parsed record, presentation strings, an arity for its own
  positional values, an optional bound environment variable, an optional action,
  its options and its child commands.

Building a tree
    from argtree import Parser

    parser = Parser("tool", "a small tool")
    parser.add_option("--verbose", "-v", "chatty output")
    init = parser.add_command("init", "create a project", nargs=1, envvar="HOME")
    init.add_option("--force", "-f", "overwrite existing files")
    remove = parser.add_command("remove", "delete a project", action=lambda: 0)
    parser.require_commands()

Registration rules (checked immediately, TypeError/ValueError on misuse)
- Sibling commands have distinct, non-empty names that do not start with '-'.
- An option's long and short forms are unique along the node's ancestor chain
  and in its subtree, so a child option can never shadow a global one.
- Lookup keys (of commands and options alike) are unique across the whole tree.

Children and options keep registration order, which is the order help shows them.
"""
import weakref

from .arguments import Option, _sanitize_nargs, _sanitize_strings
from .utils import *
from .utils import SpecType


def _sanitize_name(cls, metadata, /):
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif any(char.isspace() for char in name):
        raise ValueError(f"{cls.__typename__} 'name' {name!r} cannot contain whitespace")
    elif name.startswith("-"):
        raise ValueError(f"{cls.__typename__} 'name' {name!r} cannot start with '-'")
    metadata["name"] = name


def _sanitize_action(cls, metadata, /):
    if not isinstance(action := metadata["action"], Unset | None) and not callable(action):
        raise TypeError(f"{cls.__typename__} 'action' must be callable")
    metadata["action"] = coalesce(action)


def walk(command, /):
    """
    Yield command and every descendant, depth-first in registration order.
    """
    yield command
    for child in command._children.values():
        yield from walk(child)


def _keys(command, /):
    yield command.key
    for option in command._options.values():
        yield option.key


def _lookup(command, form, /):
    """
    The option of this single node registered under a long or short form, or None.
    """
    try:
        return command._options[command._shorts.get(form, form)]
    except KeyError:
        return None


class Command(metaclass=SpecType):
    """
    One node of the command tree.

    Nodes are created by Parser (the root) and by add_command (children); the
    parent is held through a weak reference and the tree is owned top-down by
    the children mappings.

    Properties
    - name, key, descr, usage, envvar, nargs, action: node definition.
    - children, options: registration-ordered copies of the child and option maps.
    - requires_commands, requires_options: node-local parse-time requirements.
    - default: name of the child run when no child token is present, or None.
    - parent, root, path: navigation.
    """

    __introspectable__ = (
        "name",
        "key",
        "descr",
        "usage",
        "envvar",
        "nargs",
        "action",
        "children",
        "options",
        "requires_commands",
        "requires_options",
        "default",
    )

    __displayable__ = (
        "name",
        "key",
        "descr",
        "nargs",
        "envvar",
        "children",
        "options",
    )

    def __new__(
            cls,
            name,
            descr=Unset,
            /,
            usage=Unset,
            envvar=Unset,
            nargs=0,
            action=Unset,
            key=Unset,
            parent=Unset
    ):
        """
        Construct a node. Prefer Parser(...) and Command.add_command(...).

        Parameters
        - name: str, the token users type; for the root it is replaced by the
          program base name when parsing.
        - descr: str | Text, one-line description for help.
        - usage: str | Text, example usage shown by help.
        - envvar: str, environment variable captured when the command is matched.
        - nargs: int | "+" | "*" | Arity, positional values consumed after the name.
        - action: zero-argument callable returned through Arguments.invoke().
        - key: str, lookup key for the parsed record (defaults to the name).
        - parent: Command, the node this one is attached to.
        """
        if not isinstance(parent, Command | Unset | None):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")

        metadata = {
            "name": name,
            "descr": descr,
            "usage": usage,
            "envvar": envvar,
            "nargs": nargs,
            "action": action,
            "key": key,
        }
        _sanitize_name(cls, metadata)
        _sanitize_strings(cls, metadata, "descr", "usage", "envvar", "key", texts=("descr", "usage"))
        _sanitize_nargs(cls, metadata)
        _sanitize_action(cls, metadata)
        metadata["key"] = metadata["key"] or metadata["name"]

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._parent = weakref.ref(parent) if parent else None
        self._children = {}
        self._options = {}
        self._shorts = {}
        self._requires_commands = False
        self._requires_options = False
        self._default = None
        return self

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def root(self):
        """
        Topmost command of the tree this node belongs to.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Commands from the root down to this node, both included.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    def lookup(self, form, /):
        """
        Return the option registered on this node under a long or short form, or None.
        """
        return _lookup(self, form)

    def _claim_key(self, key, /):
        for command in walk(self.root):
            if key in _keys(command):
                raise ValueError(f"{type(self).__typename__} key {key!r} is already in use by {command.name!r}")

    def _claim_forms(self, option, /):
        for command in (*self.path, *walk(self)):
            for form in option.names:
                if _lookup(command, form) is not None:
                    raise ValueError(
                        f"{type(self).__typename__} option {form!r} is already in use by {command.name!r}"
                    )

    def add_option(self, long, short=Unset, descr=Unset, /, envvar=Unset, nargs=0, default=Unset, key=Unset):
        """
        Declare an option on this command and return the command for chaining.

        Raises TypeError/ValueError when the option is malformed, when one of its
        forms is taken along the ancestor chain or in the subtree, or when its key
        is taken anywhere in the tree.
        """
        option = Option(long, short, descr, envvar=envvar, nargs=nargs, default=default, key=key)
        self._claim_forms(option)
        self._claim_key(option.key)
        self._options[option.long] = option
        if option.short:
            self._shorts[option.short] = option.long
        return self

    def add_command(self, name, descr=Unset, /, envvar=Unset, nargs=0, action=Unset, key=Unset, usage=Unset):
        """
        Attach a child command and return it.

        Raises TypeError/ValueError when the name is invalid or already used by a
        sibling, or when the key is taken anywhere in the tree.
        """
        child = Command(name, descr, usage=usage, envvar=envvar, nargs=nargs, action=action, key=key, parent=self)
        if child.name in self._children:
            raise ValueError(f"{type(self).__typename__} name {child.name!r} is already in use under {self.name!r}")
        self._claim_key(child.key)
        self._children[child.name] = child
        return child

    def require_commands(self):
        self._requires_commands = True
        return self

    def require_options(self):
        self._requires_options = True
        return self

    def add_example_usage(self, usage, /):
        metadata = {"usage": usage}
        _sanitize_strings(type(self), metadata, "usage", texts=("usage",))
        self._usage = metadata["usage"]
        return self

    def set_default(self):
        """
        Make this command the one its parent runs when no subcommand token is given.
        """
        if (parent := self.parent) is None:
            raise ValueError(f"{type(self).__typename__} root command cannot be a default subcommand")
        if parent._default not in (None, self.name):
            raise ValueError(
                f"{type(self).__typename__} {parent.name!r} already has default subcommand {parent._default!r}"
            )
        parent._default = self.name
        return self


__all__ = (
    "Command",
)
