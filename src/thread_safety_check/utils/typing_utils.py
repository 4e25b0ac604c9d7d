"""
Helpers for working with runtime type expressions.

The analyzer accepts classes as well as the objects produced by ``typing``
(generic aliases, unions, ``TypeVar``, ``Annotated``, ``NewType``). These
helpers normalise them to a small set of shapes the rest of the package
understands.
"""

import types
import typing
from typing import Any, Dict, Tuple

UNION_ORIGINS: Tuple[Any, ...] = (typing.Union, types.UnionType)

NONE_TYPE = type(None)


def is_class(tp: Any) -> bool:
  """
  True for real classes, False for parameterized aliases such as ``list[int]``.
  """
  return isinstance(tp, type) and not isinstance(tp, types.GenericAlias)


def is_type_expression(obj: Any) -> bool:
  """
  Checks whether an object can be handed to the analyzer as a type.

  Args:
      obj: Candidate type expression.

  Returns:
      bool: True for classes, typing aliases, unions, TypeVars, NewTypes and Any.
  """
  if is_class(obj) or obj is typing.Any:
    return True
  if isinstance(obj, (typing.TypeVar, typing.NewType)):
    return True
  return typing.get_origin(obj) is not None


def unwrap(tp: Any) -> Any:
  """
  Strips ``Annotated`` and ``NewType`` wrappers. ``None`` becomes ``NoneType``.
  """
  while True:
    if tp is None:
      return NONE_TYPE
    if typing.get_origin(tp) is typing.Annotated:
      tp = typing.get_args(tp)[0]
    elif isinstance(tp, typing.NewType):
      tp = tp.__supertype__
    else:
      return tp


def annotated_metadata(tp: Any) -> Tuple[Any, ...]:
  """
  Returns the metadata of an ``Annotated[T, ...]`` expression, or an empty tuple.
  """
  if typing.get_origin(tp) is typing.Annotated:
    return tuple(tp.__metadata__)
  return ()


def is_union(tp: Any) -> bool:
  return typing.get_origin(tp) in UNION_ORIGINS


def is_top_type(tp: Any) -> bool:
  """
  True for types whose contract carries no information at all (``object``, ``Any``).
  """
  return tp is object or tp is typing.Any


def origin_class(tp: Any) -> Any:
  """
  Resolves the class behind a type expression.

  Args:
      tp: A class or a parameterized alias.

  Returns:
      The class itself, the alias origin when it is a class, otherwise None.
      Unions have no class behind them.
  """
  if is_class(tp):
    return tp
  origin = typing.get_origin(tp)
  if is_class(origin) and origin not in UNION_ORIGINS:
    return origin
  return None


def substitute(tp: Any, bindings: Dict[Any, Any]) -> Any:
  """
  Replaces type variables inside a type expression.

  Args:
      tp: Type expression possibly mentioning TypeVars (``T``, ``List[T]``).
      bindings: Mapping of TypeVar to concrete type.

  Returns:
      The substituted expression, or ``tp`` unchanged when nothing applies.
  """
  if not bindings:
    return tp
  if isinstance(tp, typing.TypeVar):
    return bindings.get(tp, tp)

  params = getattr(tp, "__parameters__", ())
  if params and not is_class(tp):
    try:
      return tp[tuple(bindings.get(p, p) for p in params)]
    except TypeError:
      return tp
  return tp


def type_name(tp: Any) -> str:
  """
  Readable name of a type expression for diagnostics.
  """
  if is_class(tp):
    return tp.__qualname__
  return repr(tp)
