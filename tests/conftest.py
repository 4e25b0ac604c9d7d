"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports (package sources and the shared sample types).
- Analyzer fixtures with and without registrations.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'thread_safety_check' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(Path(__file__).parent))

from thread_safety_check.analysis.analyzer import ThreadSafetyAnalyzer
from thread_safety_check.core.registrations import Registrations

import sample_types


@pytest.fixture
def analyzer():
  """An analyzer without DI registrations."""
  return ThreadSafetyAnalyzer()


@pytest.fixture
def registrations():
  """Registrations mirroring a small container: a singleton clock and a scoped request context."""
  return Registrations.from_mapping(
    {
      sample_types.Clock: "singleton",
      sample_types.RequestContext: "scoped",
    }
  )


@pytest.fixture
def registered_analyzer(registrations):
  return ThreadSafetyAnalyzer(registrations)
