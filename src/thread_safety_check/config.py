"""
Analyzer Configuration.

Settings are read from the ``[tool.thread_safety_check]`` table of the nearest
``pyproject.toml`` and may be overridden programmatically. Types are referenced
by dotted import paths (``package.module.Class`` or ``package.module:Outer.Inner``).

.. code-block:: toml

    [tool.thread_safety_check]
    known_not_mutable_types = ["decimal.Context"]
    event_types = ["blinker.Signal"]
    trusted_members = ["app.cache.ServiceCache._lock"]
    scan_sources = true

    [tool.thread_safety_check.registrations]
    "app.services.Clock" = "singleton"
    "app.db.Session" = "scoped"
"""

import importlib
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from thread_safety_check.core.registrations import Registration, Registrations
from thread_safety_check.enums import Lifetime

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

TOOL_SECTION = "thread_safety_check"


def resolve_dotted_path(path: str) -> Any:
  """
  Imports the object named by a dotted path.

  Both ``pkg.mod.Name`` and ``pkg.mod:Outer.Inner`` are accepted. Without a
  colon the longest importable module prefix is used.

  Args:
      path (str): Dotted path.

  Returns:
      Any: The referenced object.

  Raises:
      ValueError: If no module prefix can be imported or an attribute is missing.
  """
  if ":" in path:
    module_name, _, qualname = path.partition(":")
    candidates = [(module_name, qualname.split("."))]
  else:
    parts = path.split(".")
    candidates = [(".".join(parts[:i]), parts[i:]) for i in range(len(parts) - 1, 0, -1)]

  for module_name, attributes in candidates:
    try:
      obj = importlib.import_module(module_name)
    except ImportError:
      continue

    try:
      for attribute in attributes:
        obj = getattr(obj, attribute)
    except AttributeError as e:
      raise ValueError(f"Cannot resolve '{path}': {e}")
    return obj

  raise ValueError(f"Cannot resolve '{path}': no importable module prefix.")


class AnalyzerConfig(BaseModel):
  """
  Configuration of a `ThreadSafetyAnalyzer`.
  """

  known_not_mutable_types: List[str] = Field(
    default_factory=list, description="Dotted paths of types added to the immutable allow-list."
  )
  registrations: Dict[str, Lifetime] = Field(
    default_factory=dict, description="Dotted path of a service type to its DI lifetime."
  )
  event_types: List[str] = Field(default_factory=list, description="Dotted paths of additional event classes.")
  trusted_members: List[str] = Field(
    default_factory=list, description="'module.Qualname.member' paths treated as explicitly thread safe."
  )
  scan_sources: bool = Field(True, description="Read class source to discover self.<name> attributes.")

  @field_validator("registrations", mode="before")
  @classmethod
  def normalize_lifetimes(cls, v: Any) -> Any:
    """
    Accepts lifetimes in any letter case.

    Args:
        v: Raw registration mapping.

    Returns:
        The mapping with lowercase lifetime strings.
    """
    if isinstance(v, dict):
      return {key: value.lower().strip() if isinstance(value, str) else value for key, value in v.items()}
    return v

  def resolve_known_not_mutable_types(self) -> List[Any]:
    return [resolve_dotted_path(p) for p in self.known_not_mutable_types]

  def resolve_event_types(self) -> List[type]:
    """
    Returns:
        List[type]: Imported event classes.

    Raises:
        ValueError: If a path does not name a class.
    """
    resolved = []
    for path in self.event_types:
      obj = resolve_dotted_path(path)
      if not isinstance(obj, type):
        raise ValueError(f"Event type '{path}' is not a class.")
      resolved.append(obj)
    return resolved

  def resolve_registrations(self) -> Registrations:
    return Registrations(
      Registration(resolve_dotted_path(path), lifetime) for path, lifetime in self.registrations.items()
    )

  @classmethod
  def load(
    cls,
    search_path: Optional[Path] = None,
    known_not_mutable_types: Optional[List[str]] = None,
    registrations: Optional[Dict[str, str]] = None,
    event_types: Optional[List[str]] = None,
    trusted_members: Optional[List[str]] = None,
    scan_sources: Optional[bool] = None,
  ) -> "AnalyzerConfig":
    """
    Loads configuration from pyproject.toml and applies overrides.

    List settings are extended by overrides, registrations are merged with
    overrides winning, scalar settings are replaced.

    Args:
        search_path (Optional[Path]): Directory to start searching for TOML config.
        known_not_mutable_types (Optional[List[str]]): Extra allow-listed types.
        registrations (Optional[Dict[str, str]]): Extra or replacing registrations.
        event_types (Optional[List[str]]): Extra event classes.
        trusted_members (Optional[List[str]]): Extra trusted members.
        scan_sources (Optional[bool]): Override for the source scan switch.

    Returns:
        AnalyzerConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config = _load_toml_settings(start_dir)

    final_scan = scan_sources if scan_sources is not None else toml_config.get("scan_sources", True)

    return cls(
      known_not_mutable_types=[*toml_config.get("known_not_mutable_types", []), *(known_not_mutable_types or [])],
      registrations={**toml_config.get("registrations", {}), **(registrations or {})},
      event_types=[*toml_config.get("event_types", []), *(event_types or [])],
      trusted_members=[*toml_config.get("trusted_members", []), *(trusted_members or [])],
      scan_sources=final_scan,
    )


def _load_toml_settings(start_path: Path) -> Dict[str, Any]:
  """
  Searches the start directory and its parents for 'pyproject.toml' and extracts the tool table.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Dict[str, Any]: The tool table, empty when no pyproject.toml is found.

  Raises:
      ValueError: If the nearest pyproject.toml is not valid TOML.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {toml_path}: {e}")

      return data.get("tool", {}).get(TOOL_SECTION, {})

  return {}
