"""
Thread Safety Analysis.

This module provides the `ThreadSafetyAnalyzer`, which inspects a type and
reports the members that could allow unsynchronized mutation of shared state.
It is meant to catch a mutable type being registered as a singleton in a
dependency-injection container. It does not prove thread safety: the result
lists *candidates* for review.

Algorithm (per type, memoized):
1.  Intrinsically immutable types are `SAFE` without a member walk.
2.  The cache doubles as the cycle detector: an `IN_PROGRESS` entry is written
    before the member walk. Meeting it again means the type references itself
    (directly or transitively) and yields an inconclusive result.
3.  Fields, properties and events of the type and its ancestors are classified.
    Fields that merely back an event of the same name are skipped.
4.  Members whose declared type is mutable recurse into that type, unless the
    registration oracle says the type is a shared or per-use dependency.
    Unions and allow-listed containers (``Mapping[str, X]``) are judged by
    their arms and type arguments.

The cache is not synchronized. Share an analyzer between threads only behind
an external lock.
"""

import enum
import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from thread_safety_check.analysis.classifier import ImmutabilityClassifier
from thread_safety_check.analysis.metadata import TypeMetadataProvider
from thread_safety_check.core.check_result import SAFE, CheckResult, MemberViolation, _ResultBuilder
from thread_safety_check.core.members import MemberDescriptor
from thread_safety_check.core.registrations import RegistrationOracle, Registrations
from thread_safety_check.enums import RegistrationStatus, ViolationKind
from thread_safety_check.utils.typing_utils import is_top_type, is_type_expression, is_union, type_name, unwrap

if typing.TYPE_CHECKING:
  from thread_safety_check.config import AnalyzerConfig

logger = logging.getLogger(__name__)

ViolationPolicy = Callable[[MemberViolation], Optional[MemberViolation]]


class _CacheState(enum.Enum):
  IN_PROGRESS = "in_progress"


IN_PROGRESS = _CacheState.IN_PROGRESS


class _PotentiallySafe:
  def __repr__(self) -> str:
    return "POTENTIALLY_SAFE"


# Member outcome: could not be cleared because a dependency is still being evaluated.
POTENTIALLY_SAFE = _PotentiallySafe()

_Outcome = Union[None, MemberViolation, _PotentiallySafe]


@dataclass
class AnalyzerStrategies:
  """
  Pluggable policy of a `ThreadSafetyAnalyzer`.

  Attributes:
      classifier (ImmutabilityClassifier): Decides intrinsic immutability.
      metadata (TypeMetadataProvider): Lists members of a type.
      violation_policy (Optional[ViolationPolicy]): Receives every violation before
          it is recorded. Return it (possibly re-classified) to keep it, or None to drop it.
  """

  classifier: ImmutabilityClassifier = field(default_factory=ImmutabilityClassifier)
  metadata: TypeMetadataProvider = field(default_factory=TypeMetadataProvider)
  violation_policy: Optional[ViolationPolicy] = None


class ThreadSafetyAnalyzer:
  """
  Finds members of a type that may be mutated without synchronization.

  Attributes:
      registrations (RegistrationOracle): Read-only view of DI lifetimes.
      strategies (AnalyzerStrategies): Classifier, metadata provider and violation policy.
  """

  def __init__(
    self,
    registrations: Optional[RegistrationOracle] = None,
    strategies: Optional[AnalyzerStrategies] = None,
  ):
    """
    Args:
        registrations: Registration snapshot. Defaults to an empty table.
        strategies: Custom strategies. Defaults to the reflection-based ones.
    """
    self.registrations: RegistrationOracle = registrations if registrations is not None else Registrations()
    self.strategies = strategies if strategies is not None else AnalyzerStrategies()
    self._cache: Dict[Any, Union[_CacheState, CheckResult]] = {}

  @classmethod
  def from_config(cls, config: "AnalyzerConfig") -> "ThreadSafetyAnalyzer":
    """
    Builds an analyzer from a loaded configuration.

    Args:
        config (AnalyzerConfig): Settings, usually from ``AnalyzerConfig.load()``.

    Returns:
        ThreadSafetyAnalyzer: Analyzer with the configured allow-list, events,
        trusted members and registrations.
    """
    classifier = ImmutabilityClassifier()
    classifier.known_not_mutable_types.extend(config.resolve_known_not_mutable_types())
    metadata = TypeMetadataProvider(
      event_types=config.resolve_event_types(),
      trusted_members=config.trusted_members,
      scan_sources=config.scan_sources,
    )
    return cls(
      registrations=config.resolve_registrations(),
      strategies=AnalyzerStrategies(classifier=classifier, metadata=metadata),
    )

  @property
  def known_not_mutable_types(self) -> List[Any]:
    """
    Caller-extensible allow-list of reference types considered immutable.

    By default: ``str``, ``bytes``, ``tuple``, ``frozenset``, the read-only
    collection ABCs (``Iterable``, ``Collection``, ``Sequence``, ``Mapping``, ``Set``),
    ``re.Pattern``, ``MappingProxyType`` and unions.
    """
    return self.strategies.classifier.known_not_mutable_types

  @known_not_mutable_types.setter
  def known_not_mutable_types(self, value: List[Any]) -> None:
    self.strategies.classifier.known_not_mutable_types = list(value)

  def check(self, tp: Any) -> Tuple[MemberViolation, ...]:
    """
    Lists potential non thread safe members of a type.

    Args:
        tp: Class or type expression to check.

    Returns:
        Tuple[MemberViolation, ...]: Violations in discovery order. Repeated calls
        return the same cached tuple until `clear_cache` is called.

    Raises:
        ValueError: If ``tp`` is None.
        TypeError: If ``tp`` is not a type expression, or is a union.
    """
    return self.evaluate(tp).not_thread_safe_members

  def evaluate(self, tp: Any) -> CheckResult:
    """
    Full verdict for a type, including the ``not_fully_checked`` flag.

    Args:
        tp: Class or type expression to check.

    Returns:
        CheckResult: The cached verdict.

    Raises:
        ValueError: If ``tp`` is None.
        TypeError: If ``tp`` is not a type expression, or is a union.
    """
    if tp is None:
      raise ValueError("A type to check is required, got None.")
    if not is_type_expression(tp):
      raise TypeError(f"Expected a class or type expression, got {tp!r}.")
    tp = unwrap(tp)
    if is_union(tp):
      raise TypeError(f"A union has no members of its own, check each arm of {tp!r} instead.")

    return self._evaluate(tp)

  def clear_cache(self) -> None:
    """
    Discards all memoized verdicts.
    """
    self._cache.clear()

  def _evaluate(self, tp: Any) -> CheckResult:
    if self.strategies.classifier.is_immutable(tp):
      return SAFE

    cached = self._cache.get(tp)
    if cached is IN_PROGRESS:
      logger.debug("Cyclic reference to %s; result not fully checked", type_name(tp))
      return CheckResult(not_fully_checked=True)
    if cached is not None:
      return cached

    self._cache[tp] = IN_PROGRESS
    try:
      result = self._walk_members(tp)
    except BaseException:
      del self._cache[tp]
      raise

    self._cache[tp] = result
    return result

  def _walk_members(self, tp: Any) -> CheckResult:
    metadata = self.strategies.metadata
    events = metadata.get_events(tp)
    event_names = {event.name for event in events}

    outcomes: List[_Outcome] = []
    outcomes.extend(self._check_field(f) for f in metadata.get_fields(tp) if f.name not in event_names)
    outcomes.extend(self._check_property(p) for p in metadata.get_properties(tp))
    outcomes.extend(self._check_event(e) for e in events)

    builder = _ResultBuilder()
    for outcome in outcomes:
      if outcome is None:
        continue
      if outcome is POTENTIALLY_SAFE:
        builder.not_fully_checked = True
        continue

      policy = self.strategies.violation_policy
      violation = policy(outcome) if policy is not None else outcome
      if violation is not None:
        builder.violations.append(violation)

    return builder.build()

  def _check_field(self, member: MemberDescriptor) -> _Outcome:
    if member.is_constant or member.is_synthesized or member.is_trusted:
      return None

    if member.is_assignable:
      return MemberViolation(member, ViolationKind.NON_READONLY_MEMBER)

    return self._check_member(member, member.declared_type)

  def _check_property(self, member: MemberDescriptor) -> _Outcome:
    if member.is_synthesized or member.is_trusted:
      return None

    if member.is_assignable:
      return MemberViolation(member, ViolationKind.NON_READONLY_MEMBER)

    return self._check_member(member, member.declared_type)

  def _check_event(self, member: MemberDescriptor) -> _Outcome:
    if member.is_synthesized or member.is_trusted:
      return None

    return MemberViolation(member, ViolationKind.EVENT_FOUND)

  def _check_member(self, member: MemberDescriptor, declared_type: Any) -> _Outcome:
    """
    Classifies a read-only member by its declared type.

    Args:
        member: The field or get-only property.
        declared_type: Type to judge (an arm of the declared type for unions).

    Returns:
        None when safe, a violation, or POTENTIALLY_SAFE when a cycle prevents a verdict.
    """
    declared_type = unwrap(declared_type)

    if self.strategies.classifier.is_immutable(declared_type):
      return None

    status = self.registrations.lifetime_of(declared_type)
    if status == RegistrationStatus.SHARED:
      return None
    if status == RegistrationStatus.NON_SHARED:
      return MemberViolation(member, ViolationKind.NON_SINGLETON_REGISTRATION)

    if isinstance(declared_type, typing.TypeVar):
      if declared_type.__bound__ is not None:
        return self._check_member(member, declared_type.__bound__)
      if declared_type.__constraints__:
        return self._check_arms(member, declared_type.__constraints__)
      return MemberViolation(member, ViolationKind.MUTABLE_READONLY_MEMBER)

    if is_top_type(declared_type):
      return MemberViolation(member, ViolationKind.MUTABLE_READONLY_MEMBER)

    if is_union(declared_type):
      return self._check_arms(member, typing.get_args(declared_type))

    # read-only container of mutable elements: judged by its element types
    classifier = self.strategies.classifier
    if classifier.is_allow_listed_container(declared_type):
      return self._check_arms(member, classifier.type_arguments(declared_type))

    result = self._evaluate(declared_type)
    if result.not_thread_safe_members:
      return MemberViolation(member, ViolationKind.MUTABLE_READONLY_MEMBER)
    if result.not_fully_checked:
      return POTENTIALLY_SAFE
    return None

  def _check_arms(self, member: MemberDescriptor, arms: Tuple[Any, ...]) -> _Outcome:
    outcome: _Outcome = None
    for arm in arms:
      arm_outcome = self._check_member(member, arm)
      if isinstance(arm_outcome, MemberViolation):
        return arm_outcome
      if arm_outcome is POTENTIALLY_SAFE:
        outcome = POTENTIALLY_SAFE
    return outcome
