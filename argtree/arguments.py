"""
Argtree argument definitions.

Overview
- Arity
  • Tagged arity of a command or option: an exact count (Arity.exact(n)),
    AT_LEAST_ONE or ZERO_OR_MORE. Never a magic integer.
  • Authoring APIs accept the shorthand `nargs`: an int >= 0, "+", "*" or an Arity.

- Option
  • One switch of a command: a long form ("--name"), an optional short form ("-n"),
    a description, an optional bound environment variable, an arity, an optional
    space-separated default and the lookup key its record is stored under.

Validation (construction time, TypeError/ValueError prefixed with the type name)
- long form: starts with "--", at least 3 characters, no whitespace and no "=".
- short form: starts with a single "-", at least 2 characters, no whitespace and no "=".
- descr/envvar/key: strings, trimmed, non-empty when given.
- default: a string; split on spaces into default tokens ("foo bar" -> ("foo", "bar")).

Quick example:
    >>> from argtree.arguments import Option, AT_LEAST_ONE
    >>> option = Option("--include", "-I", "add a search path", nargs=AT_LEAST_ONE)
    >>> option.names
    ('-I', '--include')
"""
import re
from enum import Enum
from typing import final

from rich.text import Text

from .utils import *
from .utils import SpecType


class ArityKind(Enum):
    EXACT = "exact"
    AT_LEAST_ONE = "+"
    ZERO_OR_MORE = "*"


@final
class Arity:
    """
    How many value tokens a command or option consumes.

    - kind: ArityKind of this arity.
    - count: the exact count, or the minimum for the unbounded kinds (1 and 0).
    - variadic: True for AT_LEAST_ONE and ZERO_OR_MORE.

    Instances are immutable and compare by value; use Arity.exact(n) or the
    AT_LEAST_ONE / ZERO_OR_MORE constants instead of the constructor.
    """
    __slots__ = ("_kind", "_count")

    def __init__(self, kind, count=0, /):
        if not isinstance(kind, ArityKind):
            raise TypeError("arity 'kind' must be an arity-kind")
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError("arity 'count' must be an integer")
        if count < 0:
            raise ValueError("arity 'count' must be a non-negative integer")
        if kind is not ArityKind.EXACT:
            count = int(kind is ArityKind.AT_LEAST_ONE)
        object.__setattr__(self, "_kind", kind)
        object.__setattr__(self, "_count", count)

    @classmethod
    def exact(cls, count, /):
        return cls(ArityKind.EXACT, count)

    @property
    def kind(self):
        return self._kind

    @property
    def count(self):
        return self._count

    @property
    def variadic(self):
        return self._kind is not ArityKind.EXACT

    def __setattr__(self, name, value):
        raise AttributeError(f"arity is immutable, cannot set {name!r}")

    def __eq__(self, other):
        if not isinstance(other, Arity):
            return NotImplemented
        return (self._kind, self._count) == (other._kind, other._count)

    def __hash__(self):
        return hash((self._kind, self._count))

    def __repr__(self):
        if self._kind is ArityKind.EXACT:
            return f"Arity.exact({self._count})"
        return self._kind.name

    def __str__(self):
        if self._kind is ArityKind.EXACT:
            return str(self._count)
        return self._kind.value


AT_LEAST_ONE = Arity(ArityKind.AT_LEAST_ONE)
ZERO_OR_MORE = Arity(ArityKind.ZERO_OR_MORE)

Arity.AT_LEAST_ONE = AT_LEAST_ONE
Arity.ZERO_OR_MORE = ZERO_OR_MORE


def _sanitize_nargs(cls, metadata, /):
    """
    Turn the `nargs` shorthand into an Arity, in place.

    Accepted: an Arity, an int >= 0 (bool is rejected), "+" or "*".
    """
    match nargs := metadata["nargs"]:
        case Arity():
            pass
        case bool():
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer, '+', '*' or an arity")
        case int() if nargs < 0:
            raise ValueError(f"{cls.__typename__} 'nargs' must be a non-negative integer")
        case int():
            nargs = Arity.exact(nargs)
        case "+":
            nargs = AT_LEAST_ONE
        case "*":
            nargs = ZERO_OR_MORE
        case str():
            raise ValueError(f"{cls.__typename__} 'nargs' must be one of '+' or '*' when a string")
        case _:
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer, '+', '*' or an arity")
    metadata["nargs"] = nargs


def _sanitize_strings(cls, metadata, /, *names, texts=()):
    """
    Trim and validate optional string fields in place; Unset becomes None.

    Names listed in `texts` may also be rich Text (rendered as-is in help).
    """
    for name in names:
        allowed = str | Text | Unset if name in texts else str | Unset
        if not isinstance(object := metadata[name], allowed):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)


def _sanitize_forms(cls, metadata, /):
    """
    Validate the long and short forms of an option.
    """
    if not isinstance(long := metadata["long"], str):
        raise TypeError(f"{cls.__typename__} long form must be a string")
    elif not long.startswith("--") or len(long) < 3:
        raise ValueError(f"{cls.__typename__} long form {long!r} must start with '--' and have a name")
    elif re.search(r"[\s=]", long):
        raise ValueError(f"{cls.__typename__} long form {long!r} cannot contain whitespace or '='")

    if not isinstance(short := metadata["short"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} short form must be a string")
    elif isinstance(short, str):
        if not short.startswith("-") or short.startswith("--") or len(short) < 2:
            raise ValueError(f"{cls.__typename__} short form {short!r} must start with a single '-' and have a name")
        elif re.search(r"[\s=]", short):
            raise ValueError(f"{cls.__typename__} short form {short!r} cannot contain whitespace or '='")
    metadata["short"] = coalesce(short)


def _sanitize_default(cls, metadata, /):
    """
    Validate the default and derive its tokens: split on single spaces, empty pieces dropped.
    """
    if not isinstance(default := metadata["default"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'default' must be a string")
    metadata["default"] = coalesce(default)
    metadata["defaults"] = tuple(filter(None, (default or "").split(" ")))


class Option(metaclass=SpecType):
    """
    Switch definition attached to a command.

    Records for an option are stored under its `key` (the long form unless
    overridden). An option with arity Arity.exact(0) is a presence-only switch.

    Properties
    - long, short, names: the long form, the short form (or None) and both as a tuple.
    - descr, envvar, key: presentation string, bound environment variable, lookup key.
    - nargs: the Arity of the option.
    - default, defaults: the raw default string and its split tokens.
    """

    __introspectable__ = (
        "long",
        "short",
        "descr",
        "envvar",
        "nargs",
        "default",
        "defaults",
        "key",
    )

    __displayable__ = (
        "long",
        "short",
        "nargs",
        "default",
        "key",
    )

    def __new__(
            cls,
            long,
            short=Unset,
            descr=Unset,
            /,
            envvar=Unset,
            nargs=0,
            default=Unset,
            key=Unset
    ):
        """
        Construct an option.

        Parameters
        - long: str, the "--name" form (required).
        - short: str | None, the "-n" form.
        - descr: str | Text, shown in help next to the forms.
        - envvar: str, environment variable captured when the option is matched.
        - nargs: int | "+" | "*" | Arity, values consumed after the option token.
        - default: str, space-separated default values applied when the option is absent.
        - key: str, lookup key for the parsed record (defaults to the long form).
        """
        metadata = {
            "long": long,
            "short": short,
            "descr": descr,
            "envvar": envvar,
            "nargs": nargs,
            "default": default,
            "key": key,
        }
        _sanitize_forms(cls, metadata)
        _sanitize_strings(cls, metadata, "descr", "envvar", "key", texts=("descr",))
        _sanitize_nargs(cls, metadata)
        _sanitize_default(cls, metadata)
        metadata["key"] = metadata["key"] or metadata["long"]

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        return tuple(name for name in (self._short, self._long) if name)


__all__ = (
    "ArityKind",
    "Arity",
    "AT_LEAST_ONE",
    "ZERO_OR_MORE",
    "Option",
)
