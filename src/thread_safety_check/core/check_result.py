"""
Data structures representing the verdict of a thread safety check.

`CheckResult` instances are immutable. The analyzer accumulates findings in a
private `_ResultBuilder` and freezes them into a `CheckResult` before caching.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from thread_safety_check.core.members import MemberDescriptor
from thread_safety_check.enums import ViolationKind


@dataclass(frozen=True)
class MemberViolation:
  """
  A member together with the reason it may allow unsynchronized mutation.
  """

  member: MemberDescriptor
  kind: ViolationKind

  def __str__(self) -> str:
    return f"{self.member.qualified_name}: {self.kind.value}"


@dataclass(frozen=True)
class CheckResult:
  """
  Verdict for a single type.

  Attributes:
      not_thread_safe_members (Tuple[MemberViolation, ...]): Violations in discovery order.
      not_fully_checked (bool): True when a dependency could not be resolved
          conclusively (cyclic reference still being evaluated). Requires manual review.
  """

  not_thread_safe_members: Tuple[MemberViolation, ...] = ()
  not_fully_checked: bool = False

  @property
  def is_thread_safe(self) -> bool:
    """
    True when no violations were found and the verdict is conclusive.
    """
    return not self.not_thread_safe_members and not self.not_fully_checked


# Shared verdict for intrinsically immutable types.
SAFE = CheckResult()


@dataclass
class _ResultBuilder:
  violations: List[MemberViolation] = field(default_factory=list)
  not_fully_checked: bool = False

  def build(self) -> CheckResult:
    return CheckResult(tuple(self.violations), self.not_fully_checked)
