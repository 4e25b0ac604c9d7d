"""
Type Metadata Provider.

This module provides the `TypeMetadataProvider`, which lists the fields,
properties and events of a class and of every ancestor in its MRO, together
with the facts the analyzer needs (assignable, constant, synthesized, trusted).

Sources of members, per class in the MRO (most-derived first):

1.  **Annotations**: ``x: T``, ``x: Final[T]``, ``x: ClassVar[T]``,
    ``x: Annotated[T, ThreadSafe]``. Dataclass, pydantic and NamedTuple fields
    are annotations too; their frozenness comes from the framework metadata.
2.  **Slots**: entries of ``__slots__``.
3.  **Instance attributes**: ``self.x = ...`` found in method source (see `lifecycle`).
4.  **Class attributes**: un-annotated data attributes in the class body.
5.  **Native storage**: builtin mutable containers (and the mutable collection
    ABCs) keep their contents where reflection cannot see them. They expose a
    synthetic assignable ``<storage>`` field instead.

Classes implemented by the interpreter or the standard library's ABC/typing
machinery are never scanned for members.
"""

import abc
import dataclasses
import functools
import inspect
import logging
import sys
import types
import typing
from collections.abc import MutableMapping, MutableSequence, MutableSet
from typing import Any, Callable, Dict, Iterable, List, Set, Tuple

from pydantic import BaseModel
from rich.markup import escape

from thread_safety_check.analysis.lifecycle import InstanceAttribute, scan_instance_attributes
from thread_safety_check.core.members import MemberDescriptor
from thread_safety_check.enums import MemberKind
from thread_safety_check.markers import Event, ThreadSafe, is_marked_thread_safe
from thread_safety_check.utils.console import log_warning
from thread_safety_check.utils.typing_utils import (
  NONE_TYPE,
  annotated_metadata,
  is_class,
  origin_class,
  substitute,
  type_name,
)

logger = logging.getLogger(__name__)

TERMINAL_TYPES: Tuple[type, ...] = (object, typing.Generic, typing.Protocol, abc.ABC, tuple, BaseModel)

NATIVE_STORAGE_TYPES: Tuple[type, ...] = (MutableSequence, MutableMapping, MutableSet)

STORAGE_FIELD = "<storage>"

SYNTHESIZED_NAMES = frozenset(
  {
    "_abc_impl",
    "_fields",
    "_field_defaults",
    "_is_protocol",
    "_is_runtime_protocol",
    "model_config",
    "model_fields",
    "model_computed_fields",
  }
)

_OPAQUE_MODULES = frozenset({"builtins", "abc", "_abc", "collections", "collections.abc", "_collections_abc", "typing"})

_LITERAL_TYPES = (int, float, complex, bool, str, bytes, NONE_TYPE)

_UNDECLARED = object()

_Extractor = Callable[[type, Dict[Any, Any], Set[str], Set[str]], List[MemberDescriptor]]


def _is_dunder(name: str) -> bool:
  return name.startswith("__") and name.endswith("__")


def _mangle(klass: type, name: str) -> str:
  if name.startswith("__") and not name.endswith("__"):
    return f"_{klass.__name__.lstrip('_')}{name}"
  return name


def _is_opaque(klass: type) -> bool:
  return klass.__module__ in _OPAQUE_MODULES


class TypeMetadataProvider:
  """
  Reflection-based member discovery.

  Attributes:
      event_types (Tuple[type, ...]): Classes whose instances (or annotated
          attributes) are reported as events.
      trusted_members (Set[str]): ``module.Qualname.member`` paths treated as explicitly trusted.
      scan_sources (bool): Whether to read class source for ``self.<name>`` assignments.
  """

  def __init__(
    self,
    event_types: Iterable[type] = (),
    trusted_members: Iterable[str] = (),
    scan_sources: bool = True,
  ):
    self.event_types: Tuple[type, ...] = (Event, *event_types)
    self.trusted_members: Set[str] = set(trusted_members)
    self.scan_sources = scan_sources
    self._annotation_cache: Dict[type, Dict[str, Any]] = {}
    self._scan_cache: Dict[type, Dict[str, InstanceAttribute]] = {}

  def ancestors(self, tp: Any) -> List[type]:
    """
    Lists the classes whose members belong to ``tp``, most-derived first.

    Walks the MRO, so every ancestor appears exactly once, and skips the
    terminal roots (``object``, ``Generic``, ``Protocol``, ``ABC``, ``tuple``, ``BaseModel``).

    Args:
        tp: Class or parameterized alias.

    Returns:
        List[type]: Classes to inspect. Empty for non-class type expressions.
    """
    klass = origin_class(tp)
    if klass is None:
      return []

    result = []
    for base in klass.__mro__:
      if base in TERMINAL_TYPES:
        continue
      result.append(base)
    return result

  def get_fields(self, tp: Any) -> List[MemberDescriptor]:
    return self._collect(tp, self._declared_fields)

  def get_properties(self, tp: Any) -> List[MemberDescriptor]:
    return self._collect(tp, self._declared_properties)

  def get_events(self, tp: Any) -> List[MemberDescriptor]:
    return self._collect(tp, self._declared_events)

  def is_event_type(self, tp: Any) -> bool:
    klass = origin_class(tp)
    return klass is not None and issubclass(klass, self.event_types)

  def _collect(self, tp: Any, extractor: _Extractor) -> List[MemberDescriptor]:
    klass = origin_class(tp)
    if klass is None:
      return []

    bindings = self._type_bindings(tp, klass)
    frozen = self._frozen_fields(klass)
    seen: Set[str] = set()
    members: List[MemberDescriptor] = []
    for base in self.ancestors(klass):
      members.extend(extractor(base, bindings.get(base, {}), frozen, seen))
    return members

  def _declared_fields(
    self, klass: type, bindings: Dict[Any, Any], frozen: Set[str], seen: Set[str]
  ) -> List[MemberDescriptor]:
    """
    Fields declared directly on ``klass`` that a more-derived class did not already declare.
    """
    if _is_opaque(klass):
      if issubclass(klass, NATIVE_STORAGE_TYPES) and STORAGE_FIELD not in seen:
        seen.add(STORAGE_FIELD)
        return [MemberDescriptor(STORAGE_FIELD, MemberKind.FIELD, object, klass, is_assignable=True)]
      return []

    fields: List[MemberDescriptor] = []
    class_dict = vars(klass)

    def add(name: str, declared: Any, assignable: bool, constant: bool = False, marked: bool = False) -> None:
      seen.add(name)
      fields.append(
        MemberDescriptor(
          name,
          MemberKind.FIELD,
          substitute(declared, bindings),
          klass,
          is_assignable=assignable,
          is_constant=constant,
          is_synthesized=name in SYNTHESIZED_NAMES,
          is_trusted=marked or self._is_listed(klass, name),
        )
      )

    for name, hint in self._own_annotations(klass).items():
      if name in seen or isinstance(hint, dataclasses.InitVar) or hint is dataclasses.InitVar:
        continue
      declared, final, marked = self._peel(hint)
      if declared is _UNDECLARED:
        declared = type(class_dict[name]) if name in class_dict else object
      constant = final and name in class_dict and type(class_dict[name]) in _LITERAL_TYPES
      add(name, declared, not (final or name in frozen), constant, marked)

    slots = class_dict.get("__slots__", ())
    if isinstance(slots, str):
      slots = (slots,)
    for slot in slots:
      name = _mangle(klass, slot)
      if slot in ("__dict__", "__weakref__") or name in seen:
        continue
      add(name, object, name not in frozen)

    for attr in self._instance_attributes(klass).values():
      name = _mangle(klass, attr.name)
      # assignments routed through a property setter or slot descriptor are not new fields
      if name in seen or hasattr(type(inspect.getattr_static(klass, name, None)), "__set__"):
        continue
      declared, final, marked = object, False, False
      if attr.annotation is not None:
        declared, final, marked = self._peel(self._evaluate(attr.annotation, klass, name))
        if declared is _UNDECLARED:
          declared = object
      add(name, declared, not (final or name in frozen), marked=marked)

    for name, value in class_dict.items():
      if _is_dunder(name) or name in seen:
        continue
      if isinstance(value, type) or hasattr(type(value), "__get__") or isinstance(value, self.event_types):
        continue
      add(name, type(value), True)

    return fields

  def _declared_properties(
    self, klass: type, bindings: Dict[Any, Any], frozen: Set[str], seen: Set[str]
  ) -> List[MemberDescriptor]:
    if _is_opaque(klass):
      return []

    properties: List[MemberDescriptor] = []
    for name, value in vars(klass).items():
      if _is_dunder(name) or name in seen:
        continue

      synthesized = False
      if isinstance(value, property):
        getter = value.fget
        assignable = value.fset is not None
      elif isinstance(value, functools.cached_property):
        getter = value.func
        assignable = True
      elif isinstance(value, (types.MemberDescriptorType, types.GetSetDescriptorType)):
        getter = None
        assignable = False
        synthesized = True
      else:
        continue

      declared, marked = object, False
      if getter is not None:
        declared, _, marked = self._peel(self._return_type(getter, klass, name))
        if declared is _UNDECLARED:
          declared = object
        marked = marked or is_marked_thread_safe(getter)

      seen.add(name)
      properties.append(
        MemberDescriptor(
          name,
          MemberKind.PROPERTY,
          substitute(declared, bindings),
          klass,
          is_assignable=assignable,
          is_synthesized=synthesized,
          is_trusted=marked or self._is_listed(klass, name),
        )
      )
    return properties

  def _declared_events(
    self, klass: type, bindings: Dict[Any, Any], frozen: Set[str], seen: Set[str]
  ) -> List[MemberDescriptor]:
    if _is_opaque(klass):
      return []

    events: List[MemberDescriptor] = []

    def add(name: str, declared: Any, marked: bool = False) -> None:
      seen.add(name)
      events.append(
        MemberDescriptor(
          name,
          MemberKind.EVENT,
          substitute(declared, bindings),
          klass,
          is_trusted=marked or self._is_listed(klass, name),
        )
      )

    for name, value in vars(klass).items():
      if not _is_dunder(name) and name not in seen and isinstance(value, self.event_types):
        add(name, type(value))

    for name, hint in self._own_annotations(klass).items():
      if name in seen:
        continue
      declared, _, marked = self._peel(hint)
      if declared is not _UNDECLARED and self.is_event_type(declared):
        add(name, declared, marked)

    return events

  def _own_annotations(self, klass: type) -> Dict[str, Any]:
    """
    Resolved annotations declared directly on ``klass`` (not inherited).

    Names whose annotation cannot be evaluated resolve to ``object`` with a warning.
    """
    cached = self._annotation_cache.get(klass)
    if cached is not None:
      return cached

    raw = self._raw_annotations(klass)
    hints: Dict[str, Any] = {}
    if raw:
      try:
        hints = typing.get_type_hints(klass, include_extras=True)
      except Exception as e:
        logger.debug("get_type_hints failed for %s: %s", klass, e)

    resolved = {name: hints[name] if name in hints else self._evaluate(value, klass, name) for name, value in raw.items()}
    self._annotation_cache[klass] = resolved
    return resolved

  def _raw_annotations(self, klass: type) -> Dict[str, Any]:
    try:
      return dict(inspect.get_annotations(klass))
    except NameError:
      if sys.version_info >= (3, 14):
        import annotationlib

        return dict(annotationlib.get_annotations(klass, format=annotationlib.Format.STRING))
      raise

  def _return_type(self, getter: Callable[..., Any], klass: type, name: str) -> Any:
    try:
      hints = typing.get_type_hints(getter, include_extras=True)
    except Exception as e:
      log_warning(escape(f"Could not resolve return annotation of {type_name(klass)}.{name}: {e}"))
      return object
    return hints.get("return", _UNDECLARED)

  def _evaluate(self, annotation: Any, klass: type, name: str) -> Any:
    """
    Evaluates an annotation given as source text in the namespace of ``klass``.

    Args:
        annotation: Annotation object or string.
        klass: Class the annotation was found on.
        name: Member name, for diagnostics.

    Returns:
        The evaluated annotation, or ``object`` if it cannot be resolved.
    """
    if not isinstance(annotation, str):
      return annotation

    module = sys.modules.get(klass.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    # module-level annotations accept Final, unlike function ones
    holder = types.ModuleType(f"{klass.__module__}.<annotations>")
    holder.__annotations__ = {name: annotation}
    try:
      return typing.get_type_hints(holder, globalns=globalns, localns=dict(vars(klass)), include_extras=True)[name]
    except Exception as e:
      log_warning(escape(f"Unresolvable annotation '{annotation}' on {type_name(klass)}.{name}: {e}"))
      return object

  def _peel(self, hint: Any) -> Tuple[Any, bool, bool]:
    """
    Removes ``Annotated``, ``Final`` and ``ClassVar`` qualifiers.

    Returns:
        Tuple of (declared type or ``_UNDECLARED``, is final, carries the ThreadSafe marker).
    """
    final = False
    marked = False
    while True:
      metadata = annotated_metadata(hint)
      if metadata:
        marked = marked or any(item is ThreadSafe for item in metadata)
        hint = typing.get_args(hint)[0]
        continue

      origin = typing.get_origin(hint)
      if hint is typing.Final or origin is typing.Final:
        final = True
      elif not (hint is typing.ClassVar or origin is typing.ClassVar):
        return hint, final, marked

      args = typing.get_args(hint)
      if not args:
        return _UNDECLARED, final, marked
      hint = args[0]

  def _instance_attributes(self, klass: type) -> Dict[str, InstanceAttribute]:
    if not self.scan_sources:
      return {}
    if klass not in self._scan_cache:
      self._scan_cache[klass] = scan_instance_attributes(klass)
    return self._scan_cache[klass]

  def _frozen_fields(self, klass: type) -> Set[str]:
    """
    Names that framework metadata forbids rebinding on instances of ``klass``.
    """
    names: Set[str] = set()
    if dataclasses.is_dataclass(klass) and klass.__dataclass_params__.frozen:
      names.update(f.name for f in dataclasses.fields(klass))

    if issubclass(klass, BaseModel):
      model_frozen = bool(klass.model_config.get("frozen", False))
      for name, info in klass.model_fields.items():
        if model_frozen or info.frozen:
          names.add(name)

    if issubclass(klass, tuple) and hasattr(klass, "_fields"):
      names.update(klass._fields)

    return names

  def _type_bindings(self, tp: Any, klass: type) -> Dict[type, Dict[Any, Any]]:
    """
    Maps each class in the MRO to the concrete arguments of its type variables.

    Arguments flow from the inspected alias (``Box[int]``) and from
    parameterized bases (``class IntBox(Box[int])``).
    """
    bindings: Dict[type, Dict[Any, Any]] = {}
    args = () if is_class(tp) else typing.get_args(tp)
    bindings[klass] = dict(zip(getattr(klass, "__parameters__", ()), args))

    generic_meta = getattr(klass, "__pydantic_generic_metadata__", None)
    if generic_meta and generic_meta.get("origin") is not None:
      origin = generic_meta["origin"]
      bindings[origin] = dict(zip(origin.__pydantic_generic_metadata__["parameters"], generic_meta["args"]))

    for cls in klass.__mro__:
      own = bindings.get(cls, {})
      for base in vars(cls).get("__orig_bases__", ()):
        base_origin = typing.get_origin(base)
        if base_origin is None or base_origin in bindings:
          continue
        base_args = [substitute(arg, own) for arg in typing.get_args(base)]
        bindings[base_origin] = dict(zip(getattr(base_origin, "__parameters__", ()), base_args))

    return bindings

  def _is_listed(self, klass: type, name: str) -> bool:
    return f"{klass.__module__}.{klass.__qualname__}.{name}" in self.trusted_members
