"""A small user service bound from raw payloads.

Run it from the repository root:

    argbind params examples.user_service:service register
    argbind invoke examples.user_service:service register --params '{"name": "Ada", "email": "ada@example.com"}'
    argbind invoke examples.user_service:service rename --params '{"user": 1, "name": "Grace"}'

Add the following to pyproject.toml so that `"user": 1` is looked up in the repository:

    [tool.argbind]
    resolver = "examples.user_service:repository"
"""

import datetime
from enum import StrEnum

from pydantic import BaseModel

import argbind as ab


class Role(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class Address(BaseModel):
    street: str
    city: str


class User(BaseModel):
    id: int = 0
    name: str
    email: str
    role: Role = Role.MEMBER
    address: Address | None = None
    born: datetime.date | None = None


class UserRepository:
    """In-memory store, also usable as an entity repository."""

    def __init__(self) -> None:
        self.users: dict[int, User] = {}

    def find(self, target: type, id: int | str) -> object | None:  # noqa: A002
        if target is not User:
            return None
        return self.users.get(int(id))

    def add(self, user: User) -> User:
        user.id = len(self.users) + 1
        self.users[user.id] = user
        return user


repository = UserRepository()


class UserService:
    def __init__(self, users: UserRepository) -> None:
        self.users = users

    def __str__(self) -> str:
        return "UserService"

    def register(self, user: User) -> User:
        return self.users.add(user)

    def rename(self, user: User, name: str) -> User:
        user.name = name
        return user

    def search(self, query: str = "", limit: int = 10, *, active_only: bool = True) -> list[User]:  # noqa: ARG002
        return [user for user in self.users.users.values() if query.lower() in user.name.lower()][:limit]


service = UserService(repository)
service.register(User(name="Ada", email="ada@example.com", role=Role.ADMIN))


if __name__ == "__main__":
    invoker = ab.ServiceMethodInvoker(resolver=ab.default_resolver(repository), reporter=ab.ConsoleReporter())

    grace = invoker.invoke(
        service,
        "register",
        {"user": {"name": "Grace", "email": "grace@example.com", "born": "1906-12-09"}},
    )
    print(grace)  # noqa: T201

    renamed = invoker.invoke(service, "rename", {"user": "1", "name": "Ada Lovelace"})
    print(renamed)  # noqa: T201

    print(invoker.invoke(service, "search", {"query": "a", "limit": "5", "active_only": "0"}))  # noqa: T201

    try:
        invoker.invoke(service, "register", {"name": "Nobody"})
    except ab.BindingError as e:
        print(f"{e.kind}: {e.details}")  # noqa: T201
