"""
Immutability Classification.

This module provides the `ImmutabilityClassifier`, which decides from shape
alone whether a type can never be mutated after construction.

A type is intrinsically immutable when it is:
1.  **A value type**: numbers, enums, ``None``, date/time values, UUIDs, ranges
    and ``Literal[...]``. Sharing one never hands out a mutable handle.
2.  **Allow-listed**: present in `known_not_mutable_types` (strings, bytes, tuples,
    read-only collection ABCs, compiled regular expressions, ...).
3.  **An immutable parameterization**: its origin is allow-listed and every type
    argument is itself immutable (``tuple[int, str]``, ``Mapping[str, bytes]``,
    ``Optional[int]``).
"""

import collections.abc
import datetime
import enum
import numbers
import re
import types
import typing
import uuid
from typing import Any, Iterable, List, Optional, Tuple

from thread_safety_check.utils.typing_utils import NONE_TYPE, is_class, unwrap

VALUE_TYPES: Tuple[type, ...] = (
  numbers.Number,
  enum.Enum,
  datetime.date,
  datetime.time,
  datetime.timedelta,
  datetime.tzinfo,
  uuid.UUID,
  range,
)


def default_known_not_mutable_types() -> List[Any]:
  """
  Returns a fresh copy of the default allow-list.

  Returns:
      List[Any]: Reference types whose public contract offers no mutation surface.
  """
  return [
    str,
    bytes,
    tuple,
    frozenset,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Sequence,
    collections.abc.Mapping,
    collections.abc.Set,
    re.Pattern,
    types.MappingProxyType,
    typing.Union,
    types.UnionType,
  ]


class ImmutabilityClassifier:
  """
  Shape-based immutability test used before any member walk.

  Attributes:
      known_not_mutable_types (List[Any]): Caller-extensible allow-list.
  """

  def __init__(self, known_not_mutable_types: Optional[Iterable[Any]] = None):
    """
    Args:
        known_not_mutable_types: Replacement allow-list. Defaults to
            `default_known_not_mutable_types()`.
    """
    if known_not_mutable_types is None:
      self.known_not_mutable_types: List[Any] = default_known_not_mutable_types()
    else:
      self.known_not_mutable_types = list(known_not_mutable_types)

  def is_immutable(self, tp: Any) -> bool:
    """
    Checks whether a type is inherently incapable of post-construction mutation.

    Args:
        tp: Class or type expression.

    Returns:
        bool: True for value types, allow-listed types and immutable parameterizations.
    """
    tp = unwrap(tp)
    if self.is_value_type(tp):
      return True

    origin = typing.get_origin(tp)
    for known in self.known_not_mutable_types:
      if known is tp or known == tp:
        return True
      if origin is not None and origin is known and self.is_immutable_generic(tp):
        return True

    return False

  def is_allow_listed_container(self, tp: Any) -> bool:
    """
    True for a parameterization of an allow-listed type (``Mapping[str, X]``, ``tuple[X, ...]``).

    Such a type offers no mutation surface of its own, so its safety depends on its arguments.
    """
    origin = typing.get_origin(unwrap(tp))
    return origin is not None and any(known is origin for known in self.known_not_mutable_types)

  def type_arguments(self, tp: Any) -> Tuple[Any, ...]:
    """
    Type arguments of a parameterized type, without the variadic and empty-tuple markers.
    """
    return tuple(arg for arg in typing.get_args(unwrap(tp)) if arg is not Ellipsis and arg != ())

  def is_value_type(self, tp: Any) -> bool:
    if tp is NONE_TYPE or typing.get_origin(tp) is typing.Literal:
      return True
    return is_class(tp) and issubclass(tp, VALUE_TYPES)

  def is_immutable_generic(self, tp: Any) -> bool:
    """
    True when every type argument of a parameterized type is immutable.

    The variadic marker (``tuple[int, ...]``) and the empty-tuple marker are ignored.
    """
    return all(self.is_immutable(arg) for arg in self.type_arguments(tp))
