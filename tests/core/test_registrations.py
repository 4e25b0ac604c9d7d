"""
Tests for the Registrations snapshot.
"""

import pytest
from thread_safety_check.core.registrations import Registration, Registrations
from thread_safety_check.enums import Lifetime, RegistrationStatus


class Clock:
  pass


class Session:
  pass


class SessionImpl(Session):
  pass


def test_unregistered():
  assert Registrations().lifetime_of(Clock) == RegistrationStatus.UNREGISTERED


def test_singleton_is_shared():
  registrations = Registrations.from_mapping({Clock: Lifetime.SINGLETON})
  assert registrations.lifetime_of(Clock) == RegistrationStatus.SHARED


@pytest.mark.parametrize("lifetime", ["scoped", "transient"])
def test_other_lifetimes_are_not_shared(lifetime):
  registrations = Registrations.from_mapping({Session: lifetime})
  assert registrations.lifetime_of(Session) == RegistrationStatus.NON_SHARED


def test_any_singleton_wins():
  registrations = Registrations(
    [
      Registration(Clock, Lifetime.SCOPED),
      Registration(Clock, Lifetime.SINGLETON),
      Registration(Clock, Lifetime.TRANSIENT),
    ]
  )
  assert registrations.lifetime_of(Clock) == RegistrationStatus.SHARED


def test_match_is_exact():
  registrations = Registrations.from_mapping({Session: "singleton"})
  assert registrations.lifetime_of(SessionImpl) == RegistrationStatus.UNREGISTERED


def test_unknown_lifetime():
  with pytest.raises(ValueError):
    Registrations.from_mapping({Clock: "forever"})


def test_snapshot_is_a_copy():
  entries = [Registration(Clock, Lifetime.SINGLETON)]
  registrations = Registrations(entries)
  entries.append(Registration(Session, Lifetime.SINGLETON))
  registrations.entries.clear()

  assert len(registrations) == 1
  assert registrations.lifetime_of(Session) == RegistrationStatus.UNREGISTERED


def test_shared_and_checked_type():
  registrations = Registrations(
    [
      Registration(Session, Lifetime.SINGLETON, implementation=SessionImpl),
      Registration(Clock, Lifetime.TRANSIENT),
    ]
  )
  shared = registrations.shared()
  assert [r.service_type for r in shared] == [Session]
  assert shared[0].checked_type is SessionImpl
  assert Registration(Clock, Lifetime.SINGLETON).checked_type is Clock
