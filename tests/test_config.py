"""
Tests for Configuration Loading.

Verifies:
1.  Reading the tool table from the nearest pyproject.toml.
2.  Merging with programmatic overrides.
3.  Resolving dotted paths into types and registrations.
"""

import collections
import decimal
import textwrap
from pathlib import Path

import pytest
from thread_safety_check.analysis.analyzer import ThreadSafetyAnalyzer
from thread_safety_check.config import AnalyzerConfig, resolve_dotted_path
from thread_safety_check.enums import Lifetime, RegistrationStatus

import sample_types


def write_pyproject(directory: Path, body: str) -> None:
  (directory / "pyproject.toml").write_text(textwrap.dedent(body))


def test_defaults_without_pyproject(tmp_path):
  config = AnalyzerConfig.load(search_path=tmp_path)
  assert config.known_not_mutable_types == []
  assert config.registrations == {}
  assert config.scan_sources is True


def test_load_from_pyproject(tmp_path):
  write_pyproject(
    tmp_path,
    """
    [tool.thread_safety_check]
    known_not_mutable_types = ["decimal.Context"]
    trusted_members = ["app.Cache.lock"]
    scan_sources = false

    [tool.thread_safety_check.registrations]
    "sample_types.Clock" = "Singleton"
    """,
  )
  config = AnalyzerConfig.load(search_path=tmp_path)
  assert config.known_not_mutable_types == ["decimal.Context"]
  assert config.trusted_members == ["app.Cache.lock"]
  assert config.registrations == {"sample_types.Clock": Lifetime.SINGLETON}
  assert config.scan_sources is False


def test_pyproject_found_in_parent(tmp_path):
  write_pyproject(tmp_path, '[tool.thread_safety_check]\nevent_types = ["sample_types.Partner"]\n')
  nested = tmp_path / "src" / "pkg"
  nested.mkdir(parents=True)
  assert AnalyzerConfig.load(search_path=nested).event_types == ["sample_types.Partner"]


def test_overrides(tmp_path):
  write_pyproject(
    tmp_path,
    """
    [tool.thread_safety_check]
    known_not_mutable_types = ["decimal.Context"]

    [tool.thread_safety_check.registrations]
    "sample_types.Clock" = "singleton"
    "sample_types.RequestContext" = "scoped"
    """,
  )
  config = AnalyzerConfig.load(
    search_path=tmp_path,
    known_not_mutable_types=["collections.OrderedDict"],
    registrations={"sample_types.RequestContext": "transient"},
    scan_sources=False,
  )
  assert config.known_not_mutable_types == ["decimal.Context", "collections.OrderedDict"]
  assert config.registrations["sample_types.Clock"] == Lifetime.SINGLETON
  assert config.registrations["sample_types.RequestContext"] == Lifetime.TRANSIENT
  assert config.scan_sources is False


def test_invalid_toml(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.thread_safety_check\n")
  with pytest.raises(ValueError, match="Invalid TOML"):
    AnalyzerConfig.load(search_path=tmp_path)


def test_invalid_lifetime():
  with pytest.raises(ValueError):
    AnalyzerConfig(registrations={"sample_types.Clock": "forever"})


def test_resolve_dotted_path():
  assert resolve_dotted_path("decimal.Context") is decimal.Context
  assert resolve_dotted_path("collections:OrderedDict") is collections.OrderedDict
  assert resolve_dotted_path("sample_types.Box") is sample_types.Box


@pytest.mark.parametrize("path", ["no_such_module_xyz.Thing", "decimal.NoSuchThing", "decimal:Context.missing"])
def test_resolve_dotted_path_errors(path):
  with pytest.raises(ValueError, match="Cannot resolve"):
    resolve_dotted_path(path)


def test_resolve_event_types_requires_classes():
  with pytest.raises(ValueError, match="not a class"):
    AnalyzerConfig(event_types=["sample_types.T"]).resolve_event_types()


def test_analyzer_from_config():
  config = AnalyzerConfig(
    known_not_mutable_types=["sample_types.MutableField"],
    registrations={"sample_types.Clock": "singleton", "sample_types.RequestContext": "scoped"},
    trusted_members=["sample_types.Derived.derived_value"],
  )
  analyzer = ThreadSafetyAnalyzer.from_config(config)

  assert analyzer.registrations.lifetime_of(sample_types.Clock) == RegistrationStatus.SHARED
  assert analyzer.check(sample_types.UsesClock) == ()
  assert analyzer.check(sample_types.UsesMutableField) == ()
  assert [v.member.name for v in analyzer.check(sample_types.UsesRequestContext)] == ["context"]
  assert [v.member.name for v in analyzer.check(sample_types.Derived)] == ["base_value"]
  # the defaults are kept when extending the allow-list
  assert str in analyzer.known_not_mutable_types
