"""Hook registry: validated create/find/list/delete over the key-value store.

The store's ``hooks`` bucket is the only source of truth. The registry keeps
no cached state; each call runs in its own store transaction.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from hookbin.errors import HookExistsError, HookNotFoundError, InvalidHookNameError
from hookbin.hooks.models import Hook

if TYPE_CHECKING:
    from hookbin.store import KeyValueStore

logger = logging.getLogger(__name__)

HOOKS_BUCKET = "hooks"

_NAME_RE = re.compile(r"[a-z0-9-]+")


def validate_hook_name(name: str) -> str:
    """Return *name* if it is a valid hook name, else raise InvalidHookNameError.

    Valid names are non-empty after trimming and consist only of lowercase
    ASCII letters, digits and ``-``. Anything that cannot be checked is
    rejected too.
    """
    try:
        if not name.strip():
            msg = "hook name is required"
            raise InvalidHookNameError(msg)
        matched = _NAME_RE.fullmatch(name) is not None
    except (AttributeError, TypeError) as exc:
        logger.warning("Hook name check failed for %r: %s", name, exc)
        msg = "name contains invalid characters"
        raise InvalidHookNameError(msg) from exc
    if not matched:
        msg = "name contains invalid characters"
        raise InvalidHookNameError(msg)
    return name


class HookRegistry:
    """Manages registered hooks in a KeyValueStore bucket.

    Store failures surface as StoreUnavailableError from the store itself.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        with self._store.update() as tx:
            tx.create_bucket(HOOKS_BUCKET)

    def list_hooks(self) -> list[Hook]:
        """Return all hooks ordered by name bytes."""
        with self._store.view() as tx:
            keys = tx.bucket(HOOKS_BUCKET).keys()
        return [Hook(name=key.decode("utf-8")) for key in keys]

    def find_hook(self, name: str) -> Hook:
        """Return the hook *name*. Raises HookNotFoundError if absent."""
        with self._store.view() as tx:
            value = tx.bucket(HOOKS_BUCKET).get(name.encode("utf-8"))
        if value is None:
            msg = f"hook '{name}' does not exist"
            raise HookNotFoundError(msg)
        return Hook(name=name)

    def has_hook(self, name: str) -> bool:
        """Return True if *name* is registered. Raises StoreUnavailableError."""
        try:
            self.find_hook(name)
        except HookNotFoundError:
            return False
        return True

    def create_hook(self, name: str) -> Hook:
        """Validate and register *name*.

        The existence check and the insert share one write transaction, so of
        two concurrent creates of the same name exactly one succeeds.
        """
        validate_hook_name(name)
        key = name.encode("utf-8")
        with self._store.update() as tx:
            bucket = tx.bucket(HOOKS_BUCKET)
            if bucket.get(key) is not None:
                msg = f"a hook named '{name}' already exists"
                raise HookExistsError(msg)
            bucket.put(key, b"")
        logger.info("Hook created: %s", name)
        return Hook(name=name)

    def delete_hook(self, name: str) -> None:
        """Remove *name*. Deleting a hook that does not exist is not an error."""
        with self._store.update() as tx:
            tx.bucket(HOOKS_BUCKET).delete(name.encode("utf-8"))
        logger.info("Hook deleted: %s", name)
