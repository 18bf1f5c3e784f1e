from __future__ import annotations

from typing import Any, Optional
from unittest import mock

import pytest

from classproxy import ClassProxy, NotFound

USERS = {
    "heelhook": {
        "login": "heelhook",
        "name": "Pablo",
        "followers": 42,
        "public_repos": 17,
        "company": None,
    },
}


class Record:
    """Attribute style record, the way API clients usually hand data back."""

    def __init__(self, **fields: Any) -> None:
        self.__dict__.update(fields)

    def keys(self) -> list[str]:
        return list(self.__dict__)


class FakeGithub:
    """Stands in for a remote API; every call is counted."""

    def __init__(self) -> None:
        self.user = mock.Mock(side_effect=self._user)
        self.repos = mock.Mock(side_effect=lambda login: [f"{login}/dotfiles"])

    def _user(self, login: Optional[str]) -> Optional[dict]:
        data = USERS.get(login)
        return dict(data) if data is not None else None


class MemoryStore:
    """Stands in for the primary store."""

    def __init__(self) -> None:
        self.rows: list[Any] = []
        self.find = mock.Mock(side_effect=self._find)

    def _find(self, criteria: dict) -> Any:
        for row in self.rows:
            if all(getattr(row, k, None) == v for k, v in criteria.items()):
                return row
        raise NotFound(criteria)


@pytest.fixture
def record_type() -> type:
    return Record


@pytest.fixture
def github() -> FakeGithub:
    return FakeGithub()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def user_db(github: FakeGithub, store: MemoryStore) -> type:
    """Model backed by a store with the API as fallback."""

    class UserDb(ClassProxy):
        def __init__(self, username=None):
            self.username = username

        person_name = None
        public_repos = None
        username_uppercase = None
        name = None

    UserDb.primary_fetch(store.find)
    UserDb.fallback_fetch(lambda criteria, user: github.user(criteria["username"]))

    @UserDb.after_fallback_fetch
    def store_login(user, record):
        if record is not None:
            user.username = record["login"]

    UserDb.proxy_methods(
        "username",
        "public_repos",
        "name",
        person_name=lambda self, record: record["name"],
        username_uppercase=lambda self: self.username.upper(),
    )
    return UserDb


@pytest.fixture
def simple_class(github: FakeGithub) -> type:
    """Model with no primary store and no after-fallback step."""

    class SimpleClass(ClassProxy):
        name = None
        followers = None
        login = None
        uppercase_login = None

    SimpleClass.fallback_fetch(lambda criteria, user: github.user(criteria["login"]))
    SimpleClass.proxy_methods("name", "followers", uppercase_login=lambda self: self.login.upper())
    SimpleClass.proxy_methods(followers=lambda self: "first version")
    SimpleClass.proxy_methods(followers=lambda self: "second version")
    return SimpleClass
