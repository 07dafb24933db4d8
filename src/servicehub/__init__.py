"""Process-wide dependency injection container.

This package maps identifiers (classes, strings or `Token` objects) to classes,
factories or pre-built instances and resolves their constructor dependencies
from explicit, ordered parameter lists.

Exports:
- `Container`: Default container supporting registration and resolution.
- `ScopedContainer`: Named container returned by `of(name)`. Shares global services
  with the default container and builds everything else independently.
- `Registration`: Provider record (implementation or factory, parameters, lifetime).
- `Lifetime`: Enum for controlling object lifetimes (singleton or transient).
- `Token`: Typed identifier for services without a class of their own.
- `service`: Class decorator that registers the decorated class.
- `container`, `get`, `of`, `register`, `reset`: the default container and shortcuts to it.
"""

from ._container import (
    CircularDependencyError,
    Container,
    FactoryError,
    Lifetime,
    Registration,
    ResolutionError,
    ScopedContainer,
    ServiceNotFoundError,
    container,
    get,
    of,
    register,
    reset,
)
from ._service import service
from ._token import Token


__all__ = [
    "CircularDependencyError",
    "Container",
    "FactoryError",
    "Lifetime",
    "Registration",
    "ResolutionError",
    "ScopedContainer",
    "ServiceNotFoundError",
    "Token",
    "container",
    "get",
    "of",
    "register",
    "reset",
    "service",
]
