"""
Markers recognised by the metadata provider.

- ``ThreadSafe``: ``Annotated`` metadata flagging a field as explicitly trusted,
  e.g. ``lock: Annotated[threading.Lock, ThreadSafe]``.
- ``thread_safe``: decorator for property getters with the same meaning.
- ``Event``: descriptor declaring an observable event. Python has no event
  members, so classes that want subscriber lists declare them with this
  descriptor (or a configured third-party signal type).
"""

from typing import Any, Callable, List, Optional, TypeVar

THREAD_SAFE_ATTR = "__thread_safe__"

F = TypeVar("F", bound=Callable[..., Any])


class _ThreadSafeMarker:
  def __repr__(self) -> str:
    return "ThreadSafe"


ThreadSafe = _ThreadSafeMarker()


def thread_safe(func: F) -> F:
  """
  Marks a property getter as explicitly thread safe.

  Must be applied below ``@property``::

      @property
      @thread_safe
      def cache(self) -> Dict[str, int]: ...
  """
  setattr(func, THREAD_SAFE_ATTR, True)
  return func


def is_marked_thread_safe(obj: Any) -> bool:
  return getattr(obj, THREAD_SAFE_ATTR, False) is True


class EventHandlers:
  """
  Per-instance subscriber list of an `Event`.
  """

  def __init__(self) -> None:
    self._handlers: List[Callable[..., Any]] = []

  def subscribe(self, handler: Callable[..., Any]) -> Callable[..., Any]:
    self._handlers.append(handler)
    return handler

  def unsubscribe(self, handler: Callable[..., Any]) -> None:
    self._handlers.remove(handler)

  def emit(self, *args: Any, **kwargs: Any) -> None:
    """
    Calls every subscriber in subscription order.
    """
    for handler in list(self._handlers):
      handler(*args, **kwargs)

  def __len__(self) -> int:
    return len(self._handlers)


class Event:
  """
  Descriptor declaring an observable event on a class.

  The subscriber list is created on first access and stored in the instance
  ``__dict__`` under the event's own name, which then shadows this
  (non-data) descriptor.
  """

  def __init__(self, doc: Optional[str] = None) -> None:
    self.name: Optional[str] = None
    self.__doc__ = doc

  def __set_name__(self, owner: type, name: str) -> None:
    self.name = name

  def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
    if instance is None:
      return self
    handlers = EventHandlers()
    instance.__dict__[self.name] = handlers
    return handlers
