"""
Enumerations for thread-safety-check.

This module defines the categories shared by the verdict model, the metadata
provider and the registration oracle.
"""

from enum import Enum


class ViolationKind(str, Enum):
  """
  Reason a member was reported as a potential source of unsynchronized mutation.
  """

  NON_READONLY_MEMBER = "non_readonly_member"  # rebinding after construction is possible
  MUTABLE_READONLY_MEMBER = "mutable_readonly_member"  # fixed reference to a mutable type
  NON_SINGLETON_REGISTRATION = "non_singleton_registration"  # captured per-use dependency
  EVENT_FOUND = "event_found"  # subscriber lists are mutable


class MemberKind(str, Enum):
  """
  Kind of class member reported by the metadata provider.
  """

  FIELD = "field"
  PROPERTY = "property"
  EVENT = "event"


class Lifetime(str, Enum):
  """
  Lifetime a service is registered with in a dependency-injection container.
  """

  SINGLETON = "singleton"
  SCOPED = "scoped"
  TRANSIENT = "transient"


class RegistrationStatus(str, Enum):
  """
  Answer of the registration oracle for a single type.
  """

  SHARED = "shared"
  NON_SHARED = "non_shared"
  UNREGISTERED = "unregistered"
