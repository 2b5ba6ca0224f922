"""Storage of the access token in a private file in the user's config directory."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "switchdl"
TOKEN_FILENAME = "token"
_TOKEN_FILE_MODE = 0o600


class TokenStoreError(Exception):
    """The token store could not be read or written."""


class TokenNotFoundError(TokenStoreError):
    """No access token is stored."""


class TokenStore:
    """A single access token kept in one file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def get(self) -> str:
        """Return the stored token, or raise TokenNotFoundError."""
        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            raise TokenNotFoundError(f"no token stored at {self.path}") from None
        except OSError as exc:
            raise TokenStoreError(f"cannot read {self.path}: {exc}") from exc
        if not content:
            raise TokenNotFoundError(f"no token stored at {self.path}")
        return content

    def set(self, token: str) -> None:
        """Store the token, readable only by the current user."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _TOKEN_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(token + "\n")
            os.chmod(self.path, _TOKEN_FILE_MODE)
        except OSError as exc:
            raise TokenStoreError(f"cannot write {self.path}: {exc}") from exc

    def delete(self) -> None:
        """Remove the stored token; a missing token is not an error."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise TokenStoreError(f"cannot remove {self.path}: {exc}") from exc


def default_store() -> TokenStore:
    """The store in the user's configuration directory."""
    return TokenStore(Path(user_config_dir(APP_NAME)) / TOKEN_FILENAME)


def get_access_token(current_token: str = "", store: TokenStore | None = None) -> str:
    """Return ``current_token`` if given, otherwise the stored token."""
    if current_token:
        return current_token
    store = store if store is not None else default_store()
    try:
        return store.get()
    except TokenNotFoundError:
        raise TokenNotFoundError(
            f"access token not found in '{store.path}'. Run 'switchdl configure' or "
            "provide it with the --token flag or SWITCHDL_TOKEN environment variable"
        ) from None
    except TokenStoreError as exc:
        raise TokenStoreError(
            f"failed to access token store: {exc}. "
            "Ensure you have appropriate permissions"
        ) from exc


def set_access_token(token: str, store: TokenStore | None = None) -> None:
    """Store a non-empty access token."""
    if token == "":
        raise ValueError("access token cannot be empty")
    store = store if store is not None else default_store()
    try:
        store.set(token)
    except TokenStoreError as exc:
        raise TokenStoreError(f"failed to save token: {exc}") from exc


def delete_access_token(store: TokenStore | None = None) -> None:
    """Remove the stored token if there is one."""
    store = store if store is not None else default_store()
    try:
        store.delete()
    except TokenStoreError as exc:
        raise TokenStoreError(f"failed to delete token: {exc}") from exc