from __future__ import annotations

from typing import Generic, TypeVar


T = TypeVar("T")


class Token(Generic[T]):
    """Identifier for services that have no class of their own.

    Tokens compare by identity, so two tokens with the same name never collide:

      DATABASE_URL: Token[str] = Token("database.url")
      container.set(DATABASE_URL, "sqlite://")
    """

    __slots__ = ("name",)

    def __init__(self, name: str | None = None) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Token({self.name!r})"
