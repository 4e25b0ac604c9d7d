"""
Instance Attribute Discovery.

Python classes rarely declare every attribute at class level; most state is
created by assignments to ``self.<name>`` inside ``__init__`` and other
methods. Reflection cannot see those attributes until an instance exists, so
this module reads the class source with LibCST and records every attribute
assigned through the method receiver.

Recognised forms:
1.  ``self.x = ...`` and tuple/list unpacking (``self.a, self.b = ...``).
2.  ``self.x: T = ...`` (the annotation source text is kept).
3.  ``self.x += ...``.

Nested classes are ignored. Static methods have no receiver; class methods
assign class attributes, which reflection already reports.
"""

import inspect
import logging
import textwrap
from dataclasses import dataclass
from typing import Dict, List, Optional

import libcst as cst

logger = logging.getLogger(__name__)

_NO_RECEIVER_DECORATORS = {"staticmethod", "classmethod"}


@dataclass
class InstanceAttribute:
  """
  An attribute assigned through the method receiver.

  Attributes:
      name (str): Attribute name.
      annotation (Optional[str]): Source text of the annotation, if any assignment had one.
  """

  name: str
  annotation: Optional[str] = None


class InstanceAttributeScanner(cst.CSTVisitor):
  """
  Collects ``self.<name>`` assignment targets of a single class definition.

  The scanned module is expected to contain the class as its outermost
  statement (the output of ``inspect.getsource``).
  """

  def __init__(self, module: cst.Module):
    """
    Args:
        module: The parsed module, used to render annotation source text.
    """
    self.attributes: Dict[str, InstanceAttribute] = {}
    self._module = module
    self._class_depth = 0
    self._receivers: List[Optional[str]] = []

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    self._class_depth += 1

  def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
    self._class_depth -= 1

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    """
    Pushes the receiver name visible inside the function.

    Closures inside a method inherit the method's receiver.
    """
    receiver: Optional[str] = None
    if self._class_depth == 1:
      if self._receivers:
        receiver = self._receivers[-1]
      else:
        receiver = self._receiver_name(node)
    self._receivers.append(receiver)

  def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
    self._receivers.pop()

  def visit_Assign(self, node: cst.Assign) -> None:
    for target in node.targets:
      self._record(target.target, None)

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    annotation = self._module.code_for_node(node.annotation.annotation)
    self._record(node.target, annotation)

  def visit_AugAssign(self, node: cst.AugAssign) -> None:
    self._record(node.target, None)

  def _record(self, node: cst.BaseExpression, annotation: Optional[str]) -> None:
    """
    Registers an assignment target if it is an attribute of the receiver.
    Recurses for tuple unpacking.

    Args:
        node: The target expression node.
        annotation: Annotation source text for annotated assignments.
    """
    receiver = self._receivers[-1] if self._receivers else None
    if receiver is None:
      return

    if isinstance(node, cst.Attribute) and isinstance(node.value, cst.Name) and node.value.value == receiver:
      name = node.attr.value
      existing = self.attributes.get(name)
      if existing is None:
        self.attributes[name] = InstanceAttribute(name, annotation)
      elif existing.annotation is None and annotation is not None:
        existing.annotation = annotation
    elif isinstance(node, (cst.Tuple, cst.List)):
      for element in node.elements:
        self._record(element.value, None)

  def _receiver_name(self, node: cst.FunctionDef) -> Optional[str]:
    for decorator in node.decorators:
      if isinstance(decorator.decorator, cst.Name) and decorator.decorator.value in _NO_RECEIVER_DECORATORS:
        return None

    params = list(node.params.posonly_params) + list(node.params.params)
    if not params:
      return None
    return params[0].name.value


def scan_instance_attributes(klass: type) -> Dict[str, InstanceAttribute]:
  """
  Finds attributes assigned through ``self`` in the methods of a class.

  Classes without retrievable source (builtins, C extensions, classes created
  at runtime) yield an empty result.

  Args:
      klass: The class to scan.

  Returns:
      Dict[str, InstanceAttribute]: Attributes in order of first assignment.
  """
  try:
    source = inspect.getsource(klass)
  except (OSError, TypeError):
    logger.debug("No source available for %s; skipping instance attribute scan", klass)
    return {}

  try:
    module = cst.parse_module(textwrap.dedent(source))
  except cst.ParserSyntaxError as e:
    logger.debug("Could not parse source of %s: %s", klass, e)
    return {}

  scanner = InstanceAttributeScanner(module)
  module.visit(scanner)
  return scanner.attributes
