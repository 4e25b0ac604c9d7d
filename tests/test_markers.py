"""
Tests for the ThreadSafe marker and the Event descriptor.
"""

from thread_safety_check.markers import Event, EventHandlers, ThreadSafe, is_marked_thread_safe, thread_safe


class Button:
  clicked = Event("Raised on click.")


def test_thread_safe_decorator():
  @thread_safe
  def getter(self):
    return 1

  assert is_marked_thread_safe(getter)
  assert not is_marked_thread_safe(lambda: None)
  assert repr(ThreadSafe) == "ThreadSafe"


def test_event_descriptor_on_class():
  assert isinstance(Button.clicked, Event)
  assert Button.clicked.name == "clicked"
  assert Button.clicked.__doc__ == "Raised on click."


def test_event_handlers_per_instance():
  first, second = Button(), Button()
  received = []

  first.clicked.subscribe(received.append)
  assert isinstance(first.clicked, EventHandlers)
  assert len(first.clicked) == 1
  assert len(second.clicked) == 0

  first.clicked.emit("ok")
  assert received == ["ok"]

  first.clicked.unsubscribe(received.append)
  first.clicked.emit("ignored")
  assert received == ["ok"]
