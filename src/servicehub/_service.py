from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from ._container import Container, Lifetime, Registration
from ._container import container as default_container


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._container import Factory

    T = TypeVar("T")


def service(
    token: Any = None,
    *,
    factory: Factory | None = None,
    transient: bool = False,
    global_: bool = False,
    params: Sequence[Any] = (),
    container: Container | None = None,
) -> Callable[[type[T]], type[T]]:
    """Class decorator registering the decorated class as a service.

    `token` defaults to the class itself. `params` is the ordered list of identifiers
    passed to the constructor, or to the factory method of a `(factory_class, method_name)` pair:

      @service(params=[Engine])
      class Car:
          def __init__(self, engine: Engine): ...

      @service("cars.sporty", factory=(CarFactory, "create_sporty"), global_=True)
      class SportsCar: ...

    Registers into the default container unless `container` is given.
    """

    def decorator(cls: type[T]) -> type[T]:
        target = container if container is not None else default_container
        target.register(
            Registration(
                id=cls if token is None else token,
                impl=cls,
                factory=factory,
                params=params,
                lifetime=Lifetime.TRANSIENT if transient else Lifetime.SINGLETON,
                is_global=global_,
            )
        )
        return cls

    return decorator
