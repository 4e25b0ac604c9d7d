"""
Tests for the thread safety test helpers.
"""

import pytest
from rich.console import Console
from thread_safety_check.analysis.analyzer import ThreadSafetyAnalyzer
from thread_safety_check.core.registrations import Registration, Registrations
from thread_safety_check.enums import Lifetime
from thread_safety_check.testing import ThreadSafetyAssertionError, assert_thread_safe, find_unsafe_singletons
from thread_safety_check.utils.console import reset_console, set_console

import sample_types


@pytest.fixture
def recorded_console():
  buffer = Console(record=True, width=200)
  set_console(buffer)
  yield buffer
  reset_console()


def test_assert_passes_for_safe_type():
  result = assert_thread_safe(sample_types.Point)
  assert result.is_thread_safe


def test_assert_fails_with_violations():
  with pytest.raises(ThreadSafetyAssertionError) as excinfo:
    assert_thread_safe(sample_types.MutablePoint)

  message = str(excinfo.value)
  assert "MutablePoint may not be thread safe." in message
  assert "MutablePoint.x: non_readonly_member" in message
  assert excinfo.value.checked_type is sample_types.MutablePoint
  assert len(excinfo.value.result.not_thread_safe_members) == 2


def test_assert_is_an_assertion_error():
  with pytest.raises(AssertionError):
    assert_thread_safe(sample_types.MutableField)


def test_not_fully_checked_requires_opt_in():
  with pytest.raises(ThreadSafetyAssertionError, match="not fully checked"):
    assert_thread_safe(sample_types.Node)

  result = assert_thread_safe(sample_types.Node, allow_not_fully_checked=True)
  assert result.not_fully_checked


def test_assert_uses_given_analyzer(registered_analyzer):
  assert_thread_safe(sample_types.UsesClock, registered_analyzer)


def test_find_unsafe_singletons(recorded_console):
  registrations = Registrations(
    [
      Registration(sample_types.Clock, Lifetime.SINGLETON),
      Registration(sample_types.RequestContext, Lifetime.SINGLETON),
      Registration(sample_types.MutablePoint, Lifetime.TRANSIENT),
    ]
  )
  findings = find_unsafe_singletons(ThreadSafetyAnalyzer(registrations), registrations)

  assert list(findings) == [sample_types.Clock]
  assert not findings[sample_types.Clock].is_thread_safe
  assert "Clock.ticks: non_readonly_member" in recorded_console.export_text()


def test_find_unsafe_singletons_checks_implementation(recorded_console):
  registrations = Registrations(
    [Registration(sample_types.RequestContext, Lifetime.SINGLETON, implementation=sample_types.MutableField)]
  )
  findings = find_unsafe_singletons(ThreadSafetyAnalyzer(registrations), registrations)
  assert list(findings) == [sample_types.RequestContext]


def test_find_unsafe_singletons_none_flagged(recorded_console):
  registrations = Registrations.from_mapping({sample_types.Point: "singleton"})
  assert find_unsafe_singletons(ThreadSafetyAnalyzer(registrations), registrations) == {}
  assert "1 singleton registrations checked, none flagged." in recorded_console.export_text()
