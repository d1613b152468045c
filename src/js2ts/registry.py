"""Registry turning recurring object shapes into named interface declarations."""

import logging

from .descriptors import ObjectShape, render

_log = logging.getLogger(__name__)

INTERFACE_PREFIX = "Interface"


class RegistryFrozenError(Exception):
  """Raised when a new shape is interned after declarations were emitted."""

  def __init__(self, signature: str) -> None:
    super().__init__(f"Cannot register new interface after emit: {signature}")
    self.signature = signature


class InterfaceRegistry:
  """Maps shape signatures to interface names, in allocation order.

  The signature of a shape is its rendered text, so two shapes with the same
  properties in a different order get two names.
  """

  def __init__(self, start: int = 0) -> None:
    self.counter = start
    self.names: dict[str, str] = {}  # signature -> name, insertion ordered
    self.frozen = False

  def intern(self, shape: ObjectShape) -> str:
    """Name for a shape, allocating a new one the first time its signature is seen."""
    signature = render(shape)
    name = self.names.get(signature)
    if name is not None:
      return name
    if self.frozen:
      raise RegistryFrozenError(signature)
    self.counter += 1
    name = f"{INTERFACE_PREFIX}{self.counter}"
    self.names[signature] = name
    _log.debug("interned %s = %s", name, signature)
    return name

  def emit(self) -> list[tuple[str, str]]:
    """(name, signature) pairs in allocation order. Freezes the registry."""
    self.frozen = True
    return [(name, signature) for signature, name in self.names.items()]

  def declarations(self) -> list[str]:
    """interface declarations as TypeScript text."""
    return [f"interface {name} {signature}" for name, signature in self.emit()]

  def lookup(self, signature: str) -> str | None:
    return self.names.get(signature)

  def __len__(self) -> int:
    return len(self.names)

  def __contains__(self, signature: str) -> bool:
    return signature in self.names
