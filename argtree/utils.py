"""
Argtree utilities shared by the definition, parsing and rendering layers.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not provided", kept apart from None so that None
    stays a legitimate user value.

- coalesce(value, default=None)
  • Materialize Unset into a default while preserving falsey values (None, 0, "").

- rename(callable, name) / @rename("name")
  • Give generated callables a stable __name__/__qualname__.

- mirror("attr")
  • Read-only property over a private field (self._attr); containers are copied
    on every read so the public view cannot mutate the tree.

- pluralize(text)
  • Small English pluralizer for counts in diagnostics ("1 value", "2 values").

- SpecType
  • Metaclass for the tree types (options, commands, parsers): derives a
    hyphenated __typename__, publishes __introspectable__ names as mirrored
    properties and generates __repr__/__rich_repr__.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> pluralize("value")
    'values'
"""
import builtins
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for parameters that were not provided.

    - bool(Unset) is False, repr(Unset) is "Unset".
    - UnsetType() always returns the same instance and cannot be subclassed.
    - Works inside PEP 604 unions, so `isinstance(x, str | Unset)` reads naturally.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsey values are kept as they are:
    - coalesce("", "x")    -> ""
    - coalesce(Unset, "x") -> "x"
    - coalesce(None, "x")  -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__ and __qualname__ on a callable.

    Two forms
    - rename(callable, name) updates the callable in place and returns it.
    - rename(name) returns a decorator doing the same on the decorated callable.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Copy containers recursively: sequences become tuples, mappings dicts, sets frozensets.

    Strings and every other object are returned as they are.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Build a read-only property returning a copy of self._{name}.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(text, /):
    """
    Pluralize the last word of text, keeping the rest of the phrase and its casing.

    Only the rules diagnostics need are covered: sibilant endings take "es",
    consonant + y becomes "ies", everything else takes "s".

    Examples
    - pluralize("value")          -> "values"
    - pluralize("missing switch") -> "missing switches"
    - pluralize("Entry")          -> "Entries"
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")

    if not (match := re.search(r"(\S+)(\s*)$", text)):
        return text

    head, last, trail = text[:match.start(1)], match.group(1), match.group(2)
    lower = last.lower()

    if lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = lower[:-1] + "ies"
    else:
        plural = lower + "s"

    if last.isupper() and len(last) > 1:
        plural = plural.upper()
    elif last[:1].isupper():
        plural = plural[:1].upper() + plural[1:]

    return head + plural + trail


class SpecType(type):
    """
    Metaclass giving tree types a uniform, introspectable surface.

    Conventions
    - __typename__ is the class name split on camel-case humps with hyphens and
      lowercased (ArgParser -> "arg-parser"); definition errors are prefixed with it.
    - Every name in __introspectable__ becomes a mirror() property over "_<name>".
    - __displayable__, when set, narrows the fields shown by __repr__/__rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        if "__repr__" not in namespace:
            self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        if "__rich_repr__" not in namespace:
            self.__rich_repr__ = __rich_repr__

        return self


Unset = UnsetType()
"""
The "not provided" sentinel. Use coalesce(value, default) to resolve it.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
