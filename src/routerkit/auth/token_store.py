"""Session token persistence.

A :class:`TokenStore` holds at most one :class:`~routerkit.models.Token`.
Only the :class:`~routerkit.auth.provider.TokenProvider` mutates it; other
parts of an application observe login and logout through
:meth:`TokenStore.subscribe`.

Two implementations ship:

* :class:`MemoryTokenStore` -- process-local, used by tests and short-lived
  scripts.
* :class:`FileTokenStore` -- one JSON file per profile under
  ``~/.local/share/routerkit/tokens/<profile>.json`` (XDG), written
  atomically with ``0o600`` permissions so tokens are never world-readable.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from routerkit.config import atomic_write, get_tokens_dir
from routerkit.models import Token

logger = logging.getLogger(__name__)

TokenListener = Callable[[Optional[Token]], None]
"""Called with the new token after every write, or ``None`` after a clear."""


class TokenStore(ABC):
    """Abstract holder of the current session token.

    Subclasses implement :meth:`_load` and :meth:`_save`; change
    notification is handled here.
    """

    def __init__(self) -> None:
        self._listeners: list[TokenListener] = []

    @abstractmethod
    def _load(self) -> Optional[Token]:
        """Return the stored token, or ``None``."""

    @abstractmethod
    def _save(self, token: Optional[Token]) -> None:
        """Persist *token*, or remove the stored token when ``None``."""

    def read(self) -> Optional[Token]:
        return self._load()

    def write(self, token: Optional[Token]) -> None:
        """Replace the stored token and notify subscribers.

        Args:
            token: The new token, or ``None`` to log out.
        """
        self._save(token)
        self._notify(token)

    def clear(self) -> None:
        self.write(None)

    @property
    def is_logged_in(self) -> bool:
        return self._load() is not None

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """Register *listener* for token changes.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, token: Optional[Token]) -> None:
        for listener in list(self._listeners):
            listener(token)


class MemoryTokenStore(TokenStore):
    """Keeps the token in memory for the lifetime of the object.

    Example::

        store = MemoryTokenStore(Token(access_token="A1", refresh_token="R1"))
        assert store.is_logged_in
    """

    def __init__(self, token: Optional[Token] = None) -> None:
        super().__init__()
        self._token = token

    def _load(self) -> Optional[Token]:
        return self._token

    def _save(self, token: Optional[Token]) -> None:
        self._token = token


class FileTokenStore(TokenStore):
    """Persists the token for a single profile as JSON.

    Args:
        profile_name: The profile identifier used to derive the file name.
        directory: Override for the tokens directory, mainly for tests.

    Example::

        store = FileTokenStore("my-api")
        store.write(Token(access_token="A1"))
        assert FileTokenStore("my-api").read().access_token == "A1"
    """

    def __init__(self, profile_name: str, directory: Optional[Path] = None) -> None:
        super().__init__()
        self._profile_name = profile_name
        self._path = (directory or get_tokens_dir()) / f"{profile_name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this profile's token file."""
        return self._path

    def _load(self) -> Optional[Token]:
        """Load the token, treating a missing or unreadable file as logged out."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Token.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self._path, exc)
            return None

    def _save(self, token: Optional[Token]) -> None:
        if token is None:
            if self._path.is_file():
                self._path.unlink()
            return
        text = json.dumps(token.model_dump(mode="json"), indent=2) + "\n"
        atomic_write(self._path, text, mode=0o600)
