"""
Member descriptors produced by the type metadata provider.
"""

from dataclasses import dataclass
from typing import Any

from thread_safety_check.enums import MemberKind
from thread_safety_check.utils.typing_utils import type_name


@dataclass(frozen=True)
class MemberDescriptor:
  """
  A field, property or event declared on a class or one of its ancestors.

  Attributes:
      name (str): Attribute name.
      kind (MemberKind): Field, property or event.
      declared_type (Any): Static type of the member (``object`` when undeclared).
      declaring_type (type): Class in the MRO that declares the member.
      is_assignable (bool): Fields: can be rebound after construction.
          Properties: expose a setter.
      is_constant (bool): ``Final`` class attribute bound to a literal value.
      is_synthesized (bool): Introduced by the interpreter or a framework
          (slot descriptors, ``_fields``, ``model_config`` ...).
      is_trusted (bool): Explicitly marked as safe by the user.
  """

  name: str
  kind: MemberKind
  declared_type: Any
  declaring_type: type
  is_assignable: bool = False
  is_constant: bool = False
  is_synthesized: bool = False
  is_trusted: bool = False

  @property
  def qualified_name(self) -> str:
    """
    Dotted path of the member, e.g. ``ServiceCache.entries``.
    """
    return f"{type_name(self.declaring_type)}.{self.name}"
