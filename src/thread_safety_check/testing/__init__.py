"""
Testing Package.

Assertion helpers built on the analyzer.
"""

from thread_safety_check.testing.assertions import (
  ThreadSafetyAssertionError,
  assert_thread_safe,
  find_unsafe_singletons,
)

__all__ = ["ThreadSafetyAssertionError", "assert_thread_safe", "find_unsafe_singletons"]
