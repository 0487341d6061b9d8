"""
Argtree parse results.

- ArgumentRecord: what a parse recorded for one command or option: its values,
  the bound environment variable's value and whether it was matched on the
  command line (defaults alone do not count as matched).
- Arguments: the records of one parse, keyed by lookup key, plus the action of
  the deepest matched command that declared one. It has no reference back to
  the command tree.

    arguments = parser.parse(["tool", "init", "demo"])
    if arguments.called("init"):
        name = arguments.get("init").value
    status = arguments.invoke() if arguments.has_action() else 0
"""
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import final

from rich.console import Console
from rich.table import Table
from rich.box import ROUNDED
from rich.text import Text

from .faults import MissingActionError, FaultCode, getdoc


@final
class ArgumentRecord:
    """
    Immutable record of one command or option.

    - values: tuple of strings (positional values, option values or defaults).
    - env: value of the bound environment variable when captured, else None.
    - called: True when the command or option was present in argv.

    Truthiness follows `called`; len(), iteration and indexing go over `values`.
    """
    __slots__ = ("_values", "_env", "_called")

    def __init__(self, values=(), env=None, called=False):
        if isinstance(values, str) or not isinstance(values, Iterable):
            raise TypeError("argument-record 'values' must be an iterable of strings")
        values = tuple(values)
        if not all(isinstance(value, str) for value in values):
            raise TypeError("argument-record 'values' must be an iterable of strings")
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_env", env)
        object.__setattr__(self, "_called", bool(called))

    @property
    def values(self):
        return self._values

    @property
    def env(self):
        return self._env

    @property
    def called(self):
        return self._called

    @property
    def value(self):
        """
        First value, or "" when there is none.
        """
        return self._values[0] if self._values else ""

    def __setattr__(self, name, value):
        raise AttributeError(f"argument-record is immutable, cannot set {name!r}")

    def __bool__(self):
        return self._called

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __getitem__(self, index):
        return self._values[index]

    def __eq__(self, other):
        if not isinstance(other, ArgumentRecord):
            return NotImplemented
        return (self._values, self._env, self._called) == (other._values, other._env, other._called)

    def __hash__(self):
        return hash((self._values, self._env, self._called))

    def __repr__(self):
        return f"argument-record(values={self._values!r}, env={self._env!r}, called={self._called!r})"

    def __rich_repr__(self):
        yield "values", self._values
        yield "env", self._env
        yield "called", self._called


class Arguments:
    """
    Result of one parse: records by lookup key and the bound action.
    """

    def __init__(self, records=None, action=None):
        if not isinstance(records, Mapping | None):
            raise TypeError("arguments 'records' must be a mapping")
        if action is not None and not callable(action):
            raise TypeError("arguments 'action' must be callable")
        self._records = MappingProxyType(dict(records or {}))
        self._action = action

    def get(self, name, /):
        """
        Record stored under name; an empty, not-called record when there is none.
        """
        return self._records.get(name, ArgumentRecord())

    def called(self, name, /):
        return name in self._records and self._records[name].called

    def has_action(self):
        return self._action is not None

    def invoke(self):
        """
        Call the bound action and return its result.

        Raises MissingActionError when no matched command declared an action.
        """
        if self._action is None:
            raise MissingActionError(
                "no action is bound to the matched commands",
                title="no function to invoke",
                code=FaultCode.MISSING_ACTION,
                hint="check has_action() first or give the command an action",
                docs=getdoc(FaultCode.MISSING_ACTION)
            )
        return self._action()

    def show(self, *, console=None):
        """
        Print every record as a table (key, called, values, env).
        """
        table = Table("key", "called", "values", "env", title="parsed arguments", box=ROUNDED)
        for key, record in self._records.items():
            table.add_row(
                Text(key),
                Text("yes" if record.called else "no"),
                Text(" ".join(record.values)),
                Text(record.env or ""),
            )
        (console or Console()).print(table)

    def __contains__(self, name):
        return name in self._records

    def __iter__(self):
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    def __repr__(self):
        return f"arguments({dict(self._records)!r})"

    def __rich_repr__(self):
        yield from self._records.items()


__all__ = (
    "ArgumentRecord",
    "Arguments",
)
