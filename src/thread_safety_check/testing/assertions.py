"""
Test Helpers.

Assertions for use in test suites or at application startup:

- `assert_thread_safe`: fails when a type has potential non thread safe members.
- `find_unsafe_singletons`: checks every singleton registration of a container snapshot.
"""

from typing import Any, Dict, Optional

from rich.markup import escape

from thread_safety_check.analysis.analyzer import ThreadSafetyAnalyzer
from thread_safety_check.core.check_result import CheckResult
from thread_safety_check.core.registrations import Registrations
from thread_safety_check.utils.console import log_success, log_warning
from thread_safety_check.utils.typing_utils import type_name


class ThreadSafetyAssertionError(AssertionError):
  """
  Raised by `assert_thread_safe`.

  Attributes:
      checked_type: The type that failed.
      result (CheckResult): Its verdict.
  """

  def __init__(self, checked_type: Any, result: CheckResult):
    self.checked_type = checked_type
    self.result = result
    super().__init__(_describe(checked_type, result))


def _describe(checked_type: Any, result: CheckResult) -> str:
  lines = [f"{type_name(checked_type)} may not be thread safe."]
  lines.extend(f"  - {violation}" for violation in result.not_thread_safe_members)
  if result.not_fully_checked:
    lines.append("  (not fully checked: cyclic references require manual review)")
  return "\n".join(lines)


def assert_thread_safe(
  tp: Any,
  analyzer: Optional[ThreadSafetyAnalyzer] = None,
  allow_not_fully_checked: bool = False,
) -> CheckResult:
  """
  Asserts that a type has no potential non thread safe members.

  Args:
      tp: Type to check.
      analyzer: Analyzer to use. A default one (no registrations) if omitted.
      allow_not_fully_checked: Accept inconclusive verdicts caused by cycles.

  Returns:
      CheckResult: The verdict, when the assertion holds.

  Raises:
      ThreadSafetyAssertionError: If violations were found, or the verdict is
          inconclusive and ``allow_not_fully_checked`` is False.
  """
  analyzer = analyzer or ThreadSafetyAnalyzer()
  result = analyzer.evaluate(tp)
  if result.not_thread_safe_members or (result.not_fully_checked and not allow_not_fully_checked):
    raise ThreadSafetyAssertionError(tp, result)
  return result


def find_unsafe_singletons(analyzer: ThreadSafetyAnalyzer, registrations: Registrations) -> Dict[Any, CheckResult]:
  """
  Checks the implementation of every singleton registration.

  Args:
      analyzer: Analyzer to use, normally built over the same registrations.
      registrations: Registration snapshot to scan.

  Returns:
      Dict[Any, CheckResult]: Service type to verdict, for registrations whose
      verdict has violations or is not fully checked. Empty when all are safe.
  """
  findings: Dict[Any, CheckResult] = {}
  for registration in registrations.shared():
    result = analyzer.evaluate(registration.checked_type)
    if not result.is_thread_safe:
      findings[registration.service_type] = result
      log_warning(escape(_describe(registration.checked_type, result)))

  if not findings:
    log_success(f"{len(registrations.shared())} singleton registrations checked, none flagged.")
  return findings
