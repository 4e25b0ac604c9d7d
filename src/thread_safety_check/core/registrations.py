"""
Registration Oracle.

The analyzer never talks to a dependency-injection container directly. It asks
a `RegistrationOracle` which lifetime, if any, a type is registered with. The
`Registrations` class is a snapshot of a container's registration table,
built from whatever the container exposes (a list of pairs, a mapping).
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from thread_safety_check.enums import Lifetime, RegistrationStatus


class RegistrationOracle(Protocol):
  """
  Read-only view of DI registrations consumed by the analyzer.
  """

  def lifetime_of(self, tp: Any) -> RegistrationStatus: ...


@dataclass(frozen=True)
class Registration:
  """
  One entry of a container's registration table.

  Attributes:
      service_type: The type consumers ask the container for.
      lifetime: Lifetime the service is registered with.
      implementation: Concrete class constructed for the service, if different.
  """

  service_type: Any
  lifetime: Lifetime
  implementation: Optional[type] = None

  @property
  def checked_type(self) -> Any:
    """
    The type whose shape determines the thread safety of this registration.
    """
    return self.implementation if self.implementation is not None else self.service_type


class Registrations:
  """
  Snapshot of a registration table.

  A type with at least one singleton registration is SHARED, even when other
  registrations of the same type use a different lifetime.
  """

  def __init__(self, entries: Iterable[Registration] = ()):
    """
    Args:
        entries: Registrations to snapshot. The iterable is copied.
    """
    self._entries: List[Registration] = list(entries)

  @classmethod
  def from_mapping(cls, mapping: Mapping[Any, Union[Lifetime, str]]) -> "Registrations":
    """
    Builds a snapshot from ``{service_type: lifetime}``.

    Args:
        mapping: Service type to lifetime (enum member or its string value).

    Returns:
        Registrations: The snapshot.

    Raises:
        ValueError: If a lifetime string is unknown.
    """
    return cls(Registration(service_type, Lifetime(lifetime)) for service_type, lifetime in mapping.items())

  @property
  def entries(self) -> List[Registration]:
    return list(self._entries)

  def lifetime_of(self, tp: Any) -> RegistrationStatus:
    """
    Reports how a type is registered.

    Args:
        tp: Type handle to look up. Matched by equality with the service type.

    Returns:
        RegistrationStatus: SHARED, NON_SHARED or UNREGISTERED.
    """
    status = RegistrationStatus.UNREGISTERED
    for entry in self._entries:
      if entry.service_type != tp:
        continue
      if entry.lifetime == Lifetime.SINGLETON:
        return RegistrationStatus.SHARED
      status = RegistrationStatus.NON_SHARED
    return status

  def shared(self) -> List[Registration]:
    """
    Returns:
        List[Registration]: All singleton registrations in table order.
    """
    return [entry for entry in self._entries if entry.lifetime == Lifetime.SINGLETON]

  def __len__(self) -> int:
    return len(self._entries)
