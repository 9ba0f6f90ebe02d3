from __future__ import annotations
import logging
import random
import string
from typing import Any, Dict, List, Optional

from ..dispatch.invoker import remote
from .base import BaseJsonApplicationService, BaseJsonSessionService

logger = logging.getLogger("services")

CHAR_LOOKUP = string.digits + string.ascii_letters


def _page(items: List[Any], page: int, rows: int) -> List[Any]:
    start = page * rows
    return items[start:start + rows]


class TestService(BaseJsonSessionService):
    """Exercises argument matching, return values and exceptions from a client."""

    @remote("echo")
    def echo_int(self, i: int) -> int:
        return i

    @remote("echo")
    def echo_float(self, d: float) -> float:
        return d

    @remote("echo")
    def echo_bool(self, b: bool) -> bool:
        return b

    @remote("echo")
    def echo_str(self, s: str) -> str:
        return s

    @remote("echo")
    def echo_dict(self, m: dict) -> dict:
        return m

    @remote("echo")
    def echo_list(self, items: list) -> list:
        return items

    @remote("echo")
    def echo_all(self, i: int, d: float, b: bool, s: str) -> list:
        return [i, d, b, s]

    def return_void(self) -> None:
        pass

    def return_null(self) -> Optional[str]:
        return None

    def throw_exception(self) -> None:
        try:
            try:
                raise RuntimeError("error cause")
            except RuntimeError as e:
                raise ValueError("exception cause") from e
        except ValueError as e:
            raise Exception("exception!") from e

    # session scoped value
    saved_value: Optional[str] = None

    def save_value(self, value: str) -> None:
        self.saved_value = value

    def retrieve_value(self) -> Optional[str]:
        return self.saved_value

    def has_value(self) -> bool:
        return self.saved_value is not None

    def delete_value(self) -> None:
        self.saved_value = None


class RandomService(BaseJsonSessionService):
    """Generates random strings and remembers the last one per session."""

    def __init__(self):
        self.last_random_string: Optional[str] = None

    def create_random_string(self, length: int) -> Dict[str, Any]:
        self.last_random_string = "".join(random.choice(CHAR_LOOKUP) for _ in range(length))
        return {"created": self.last_random_string, "length": length}

    def get_last_random_string(self) -> Optional[str]:
        return self.last_random_string


class ChatService(BaseJsonApplicationService):
    """A message board shared by every client of the application."""

    def __init__(self):
        self.users: Dict[str, List[str]] = {}
        self.users_backup: Dict[str, List[str]] = {}
        self.posts: List[str] = []

    def valid_username(self, username: str) -> bool:
        return username in self.users

    def login(self, username: str) -> bool:
        if self.valid_username(username):
            return False
        self.users[username] = self.users_backup.pop(username, [])
        logger.info("chat: %s logged in", username)
        return True

    def logout(self, username: str) -> bool:
        if not self.valid_username(username):
            return False
        self.users_backup[username] = self.users.pop(username)
        logger.info("chat: %s logged out", username)
        return True

    def post(self, username: str, message: str) -> bool:
        if not self.valid_username(username):
            return False
        self.users[username].insert(0, message)
        self.posts.insert(0, f"{username} says: {message}")
        return True

    @remote("get_posts")
    def get_all_posts(self, page: int, rows: int) -> list:
        return _page(self.posts, page, rows)

    @remote("get_posts")
    def get_user_posts(self, username: str, page: int, rows: int) -> list:
        if not self.valid_username(username):
            raise KeyError(f"invalid username: {username}")
        return _page(self.users[username], page, rows)

    def get_users(self, page: int, rows: int) -> list:
        return _page(list(self.users), page, rows)
