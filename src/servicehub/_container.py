from __future__ import annotations

import inspect
import logging
import threading
import typing
from dataclasses import dataclass, replace
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    cast,
    overload,
)

from ._token import Token


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    T = TypeVar("T")

    Identifier = type[T] | str | Token[T]
    # Either a zero-argument callable or a (factory_class, method_name) pair
    Factory = Callable[[], object] | tuple[Any, str]


class _Unset:
    def __repr__(self) -> str:
        return "<unset>"


_UNSET: Any = _Unset()


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class ResolutionError(RuntimeError):
    pass


class ServiceNotFoundError(KeyError):
    def __init__(self, token: object) -> None:
        self.token = token
        super().__init__(f"No registration found for token: {token!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument
        return str(self.args[0])


class FactoryError(ResolutionError):
    pass


class CircularDependencyError(ResolutionError):
    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = tuple(chain)
        path = " -> ".join(_describe(token) for token in self.chain)
        super().__init__(f"Circular dependency detected: {path}")


@dataclass
class Registration:
    """Provider record for one identifier.

    `params` lists the identifiers resolved and passed positionally to `impl`
    (or to the factory method of a `(factory_class, method_name)` pair).
    Plain callable factories are invoked without arguments.
    """

    id: Any
    impl: type | None = None
    factory: Factory | None = None
    params: Sequence[Any] = ()
    lifetime: Lifetime = Lifetime.SINGLETON
    is_global: bool = False
    cached_instance: object = _UNSET

    def __post_init__(self) -> None:  # noqa: C901
        if not _is_identifier(self.id):
            msg = f"Service id must be a class, a string or a Token, got {self.id!r}"
            raise TypeError(msg)

        self.params = tuple(self.params)
        for param in self.params:
            if not _is_identifier(param):
                msg = f"Parameter identifiers of {_describe(self.id)} must be classes, strings or Tokens, got {param!r}"
                raise TypeError(msg)

        if self.impl is None and self.factory is None and not self.has_instance and inspect.isclass(self.id):
            self.impl = self.id

        if self.impl is not None and not inspect.isclass(self.impl):
            msg = f"Implementation of {_describe(self.id)} must be a class, got {self.impl!r}"
            raise TypeError(msg)

        if self.impl is None and self.factory is None and not self.has_instance:
            msg = f"Either `impl`, `factory` or an instance must be provided for {_describe(self.id)}."
            raise ValueError(msg)

        if self.has_instance and self.transient:
            msg = f"Pre-built instance for {_describe(self.id)} cannot be transient."
            raise ValueError(msg)

        # Only class tokens can be validated; protocols are matched structurally, which is out of scope.
        if inspect.isclass(self.id) and self.impl is not None and self.impl is not self.id:  # noqa: SIM102
            if not _is_protocol(self.id) and not issubclass(self.impl, self.id):
                msg = f"Implementation {self.impl.__name__} must be a subclass of {self.id.__name__}"
                raise TypeError(msg)

    @property
    def transient(self) -> bool:
        return self.lifetime is Lifetime.TRANSIENT

    @property
    def has_instance(self) -> bool:
        return self.cached_instance is not _UNSET

    @property
    def constructible(self) -> bool:
        return self.impl is not None or self.factory is not None

    def detached(self) -> Registration:
        """Copy of this registration without its cached instance."""
        return replace(self, cached_instance=_UNSET)


class Container:
    """Default (global) DI container.

    - register classes, factories or pre-built instances
    - resolve with explicit constructor parameter lists
    - lifetimes: singleton / transient
    - named scopes via `of`, sharing global services with this container.
    """

    def __init__(self) -> None:
        self._registrations: dict[Any, Registration] = {}
        self._scopes: dict[str, ScopedContainer] = {}
        self._resolving: list[Any] = []
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name or 'default'}>"

    @property
    def name(self) -> str | None:
        return None

    def register(self, registration: Registration) -> None:
        """Insert or overwrite the registration for `registration.id`.

        Example:
          container.register(Registration(IFoo, impl=FooImpl, params=[Db]))
          container.register(Registration("db", factory=create_db, lifetime=Lifetime.TRANSIENT))

        """
        with self._lock:
            self._registrations[registration.id] = registration
            self._drop_scope_copies(registration.id)
        logger.debug("Registered %s in %r", _describe(registration.id), self)

    def set(self, token: Identifier[T], instance: object) -> None:
        """Register a pre-built instance (always singleton)."""
        self.register(Registration(id=token, cached_instance=instance))

    def has(self, token: Identifier[T]) -> bool:
        with self._lock:
            return token in self._registrations

    def remove(self, *tokens: Identifier[Any]) -> None:
        with self._lock:
            for token in tokens:
                self._registrations.pop(token, None)
                self._drop_scope_copies(token)

    def reset(self) -> None:
        """Drop every registration, including those of the named scopes."""
        with self._lock:
            self._registrations.clear()
            for scope in self._scopes.values():
                scope.reset()
        logger.debug("Reset %r", self)

    def of(self, name: str | None) -> Container:
        """Return the scoped container called `name`, creating it on first use."""
        if name is None:
            return self

        with self._lock:
            scope = self._scopes.get(name)
            if scope is None:
                scope = ScopedContainer(name, self, _from_parent=True)
                self._scopes[name] = scope
                logger.debug("Created scoped container %r", name)
            return scope

    def _drop_scope_copies(self, token: Identifier[Any]) -> None:
        for scope in self._scopes.values():
            scope._drop_copy(token)  # noqa: SLF001

    @overload
    def get(self, token: type[T]) -> T: ...

    @overload
    def get(self, token: Token[T]) -> T: ...

    @overload
    def get(self, token: str) -> object: ...

    def get(self, token: Identifier[T]) -> object:
        """Resolve the token to an instance.

        - If a registration exists: return its cached instance or build it (factory/impl).
        - If no registration and token is a class: register it with no parameters and build it.
        - Otherwise: raise ServiceNotFoundError.
        """
        with self._lock:
            reg = self._registrations.get(token)
            if reg is None:
                reg = self._register_default(token)
            return self._resolve(reg)

    def _register_default(self, token: Identifier[T]) -> Registration:
        if not inspect.isclass(token):
            raise ServiceNotFoundError(token)

        reg = Registration(id=token)
        self._registrations[token] = reg
        logger.debug("Lazily registered %s in %r", _describe(token), self)
        return reg

    def _resolve(self, reg: Registration) -> object:
        if reg.has_instance and not reg.transient:
            return reg.cached_instance

        if reg.id in self._resolving:
            start = self._resolving.index(reg.id)
            raise CircularDependencyError([*self._resolving[start:], reg.id])

        self._resolving.append(reg.id)
        try:
            instance = self._construct(reg)
        finally:
            self._resolving.pop()

        if not reg.transient:
            reg.cached_instance = instance

        return instance

    def _construct(self, reg: Registration) -> object:
        factory = reg.factory

        if factory is None:
            impl = cast("type", reg.impl)
            args = self._resolve_params(reg)
            logger.debug("Constructing %s for %s in %r", impl.__qualname__, _describe(reg.id), self)
            return impl(*args)

        if isinstance(factory, (tuple, list)):
            return self._call_factory_method(reg, factory)

        if callable(factory):
            logger.debug("Calling factory %r for %s in %r", factory, _describe(reg.id), self)
            return factory()

        msg = f"Factory for {_describe(reg.id)} must be a callable or a (factory_class, method_name) pair, got {factory!r}"
        raise FactoryError(msg)

    def _call_factory_method(self, reg: Registration, factory: Sequence[Any]) -> object:
        if len(factory) != 2:  # noqa: PLR2004
            msg = f"Factory for {_describe(reg.id)} must be a (factory_class, method_name) pair, got {factory!r}"
            raise FactoryError(msg)

        owner, method_name = factory
        if not _is_identifier(owner) or not isinstance(method_name, str):
            msg = f"Factory for {_describe(reg.id)} must be a (factory_class, method_name) pair, got {factory!r}"
            raise FactoryError(msg)

        factory_instance = self.get(owner)
        method = getattr(factory_instance, method_name, None)
        if method is None or not callable(method):
            msg = f"{type(factory_instance).__name__} has no callable '{method_name}' to build {_describe(reg.id)}"
            raise FactoryError(msg)

        args = self._resolve_params(reg)
        logger.debug("Calling %s.%s for %s in %r", type(factory_instance).__name__, method_name, _describe(reg.id), self)
        return method(*args)

    def _resolve_params(self, reg: Registration) -> list[object]:
        return [self.get(param) for param in reg.params]


class ScopedContainer(Container):
    """A named container that resolves within itself first, then consults the default container.

    Global registrations and pre-built instances of the default container are shared;
    any other registration found there is copied into the scope and built independently.
    """

    def __init__(self, name: str, parent: Container, *, _from_parent: bool = False) -> None:
        if not _from_parent:
            msg = "Scoped containers must be created via Container.of()"
            raise RuntimeError(msg)
        super().__init__()
        self._name = name
        self._parent = parent
        self._lock = parent._lock  # noqa: SLF001
        # ids registered implicitly: copied from the default container or lazily registered
        self._copies: set[Any] = set()

    @property
    def name(self) -> str | None:
        return self._name

    def register(self, registration: Registration) -> None:
        if registration.is_global:
            # Global services live in the default container only
            with self._lock:
                self._registrations.pop(registration.id, None)
                self._copies.discard(registration.id)
                self._parent.register(registration)
            return
        with self._lock:
            self._copies.discard(registration.id)
            super().register(registration)

    def remove(self, *tokens: Identifier[Any]) -> None:
        with self._lock:
            self._copies.difference_update(tokens)
            super().remove(*tokens)

    def reset(self) -> None:
        with self._lock:
            self._copies.clear()
            super().reset()

    def _drop_copy(self, token: Identifier[Any]) -> None:
        if token in self._copies:
            self._copies.discard(token)
            self._registrations.pop(token, None)

    def _register_default(self, token: Identifier[T]) -> Registration:
        reg = super()._register_default(token)
        self._copies.add(token)
        return reg

    def has(self, token: Identifier[T]) -> bool:
        with self._lock:
            return token in self._registrations or self._parent.has(token)

    def of(self, name: str | None) -> Container:
        return self._parent.of(name)

    @overload
    def get(self, token: type[T]) -> T: ...

    @overload
    def get(self, token: Token[T]) -> T: ...

    @overload
    def get(self, token: str) -> object: ...

    def get(self, token: Identifier[T]) -> object:
        """Resolve the token to an instance.

        Global registrations of the default container always resolve there, even when
        this scope holds its own registration for the token. Otherwise registrations in
        this scope win; instance-only default registrations resolve in the default
        container and other default registrations are copied here and resolved locally.
        """
        with self._lock:
            parent_reg = self._parent._registrations.get(token)  # noqa: SLF001
            if parent_reg is not None and parent_reg.is_global:
                return self._parent.get(token)

            if token not in self._registrations and parent_reg is not None:
                if not parent_reg.constructible:
                    return self._parent.get(token)
                self._registrations[token] = parent_reg.detached()
                self._copies.add(token)

            return super().get(token)


def _is_identifier(token: object) -> bool:
    return inspect.isclass(token) or isinstance(token, (str, Token))


def _describe(token: object) -> str:
    if inspect.isclass(token):
        return token.__qualname__
    return repr(token)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        return inspect.isclass(tp) and issubclass(tp, cast("type", Protocol))


container = Container()


@overload
def get(token: type[T]) -> T: ...


@overload
def get(token: Token[T]) -> T: ...


@overload
def get(token: str) -> object: ...


def get(token: Identifier[T]) -> object:
    """Resolve `token` in the default container."""
    return container.get(token)


def of(name: str | None) -> Container:
    return container.of(name)


def register(registration: Registration) -> None:
    container.register(registration)


def reset(name: str | None = None) -> None:
    """Reset the default container (and every scope), or only the scope called `name`."""
    container.of(name).reset()
