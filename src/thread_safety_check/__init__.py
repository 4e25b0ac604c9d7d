"""
thread-safety-check Package.

A structural analyzer that reports members of a type which could allow
unsynchronized mutation of shared state. Use it in tests or at startup to
catch mutable types registered as singletons in a dependency-injection container.

Usage
-----

Single Type
^^^^^^^^^^^

.. code-block:: python

    import thread_safety_check as tsc

    @dataclass
    class Counter:
        value: int = 0

    for violation in tsc.check(Counter):
        print(violation)
    # Counter.value: non_readonly_member

Container Registrations
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from thread_safety_check import Registrations, ThreadSafetyAnalyzer, configure_logging
    from thread_safety_check.testing import find_unsafe_singletons

    configure_logging()  # render findings with rich

    registrations = Registrations.from_mapping({Clock: "singleton", Session: "scoped"})
    analyzer = ThreadSafetyAnalyzer(registrations)
    unsafe = find_unsafe_singletons(analyzer, registrations)
"""

from typing import Any, Optional, Tuple

from thread_safety_check.analysis.analyzer import AnalyzerStrategies, ThreadSafetyAnalyzer
from thread_safety_check.analysis.classifier import ImmutabilityClassifier
from thread_safety_check.analysis.metadata import TypeMetadataProvider
from thread_safety_check.config import AnalyzerConfig
from thread_safety_check.core.check_result import SAFE, CheckResult, MemberViolation
from thread_safety_check.core.members import MemberDescriptor
from thread_safety_check.core.registrations import Registration, RegistrationOracle, Registrations
from thread_safety_check.enums import Lifetime, MemberKind, RegistrationStatus, ViolationKind
from thread_safety_check.markers import Event, ThreadSafe, thread_safe
from thread_safety_check.utils.console import configure_logging

__version__ = "0.1.0"


def check(tp: Any, registrations: Optional[RegistrationOracle] = None) -> Tuple[MemberViolation, ...]:
  """
  Lists potential non thread safe members of a type with a fresh analyzer.

  Args:
      tp: Class or type expression.
      registrations (RegistrationOracle, optional): DI registrations to honour.

  Returns:
      Tuple[MemberViolation, ...]: Violations in discovery order.
  """
  return ThreadSafetyAnalyzer(registrations).check(tp)


__all__ = [
  "SAFE",
  "AnalyzerConfig",
  "AnalyzerStrategies",
  "CheckResult",
  "Event",
  "ImmutabilityClassifier",
  "Lifetime",
  "MemberDescriptor",
  "MemberKind",
  "MemberViolation",
  "Registration",
  "RegistrationOracle",
  "RegistrationStatus",
  "Registrations",
  "ThreadSafe",
  "ThreadSafetyAnalyzer",
  "TypeMetadataProvider",
  "ViolationKind",
  "__version__",
  "check",
  "configure_logging",
  "thread_safe",
]
