"""
Account directory backed by AccountsService.

Keeps a snapshot of the raw user records published by
org.freedesktop.Accounts and materializes ``UserAccount`` objects from it on
every query. Consumers subscribe to change kinds and recompute from scratch
on each event; events never carry deltas.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from kiwimenu.core.errors import DataAnomaly, KiwiMenuError
from kiwimenu.core.models import MINIMUM_VISIBLE_UID, UserAccount
from kiwimenu.core.signals import Handle, SignalHub
from kiwimenu.shared.concurrency_helper import ConcurrencyHelper

LOADED = "loaded"
ACCOUNT_ADDED = "account-added"
ACCOUNT_REMOVED = "account-removed"
ACCOUNT_CHANGED = "account-changed"
EVENT_KINDS = [LOADED, ACCOUNT_ADDED, ACCOUNT_REMOVED, ACCOUNT_CHANGED]

# Seconds between load attempts while the service is unreachable; doubles up to the cap.
RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 30.0


async def _default_client_factory(logger: Any):
    from kiwimenu.services.accounts_service import AccountsServiceClient

    return await AccountsServiceClient.connect(logger)


class AccountDirectory:
    def __init__(
        self,
        logger: Any,
        client_factory: Optional[Callable[[Any], Awaitable[Any]]] = None,
        minimum_uid: int = MINIMUM_VISIBLE_UID,
        retry_delay: float = RETRY_DELAY,
        max_retry_delay: float = MAX_RETRY_DELAY,
    ):
        self.logger = logger
        self.minimum_uid = minimum_uid
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None
        self._records: Dict[str, Dict[str, Any]] = {}
        self._loaded = False
        self._destroyed = False
        self._load_task = None
        self._signals = SignalHub(logger, EVENT_KINDS)
        self._concurrency = ConcurrencyHelper(logger)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def subscribe(self, event_kind: str, handler: Callable[..., Any]) -> Handle:
        return self._signals.subscribe(event_kind, handler)

    def subscribe_all(self, handler: Callable[..., Any]) -> List[Handle]:
        return [self._signals.subscribe(kind, handler) for kind in EVENT_KINDS]

    def revoke(self, handle: Handle) -> bool:
        return self._signals.revoke(handle)

    def list_accounts(self) -> List[UserAccount]:
        """Accounts of the current snapshot; empty until the service is loaded."""
        if not self._loaded:
            return []
        accounts = []
        for object_path, record in self._records.items():
            try:
                accounts.append(UserAccount.from_record(record))
            except DataAnomaly as e:
                self.logger.debug(f"Skipping account record {object_path}: {e}")
        return accounts

    def count_real_users(self) -> int:
        return sum(
            1 for account in self.list_accounts() if account.is_real_user(self.minimum_uid)
        )

    def ensure_loaded(self) -> None:
        """
        Starts loading the service when needed; ``loaded`` fires once done.
        A failed load is retried with a growing delay until it succeeds or
        the directory is destroyed.
        """
        if self._loaded or self._destroyed:
            return
        if self._load_task is not None and not self._load_task.done():
            return
        self._load_task = self._concurrency.run_in_async_task(self._load_until_ready())

    async def _load_until_ready(self) -> bool:
        delay = self.retry_delay
        while not await self.load():
            if self._destroyed:
                return False
            self.logger.debug(f"Retrying AccountsService in {delay:g}s.")
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.max_retry_delay)
        return True

    async def _get_client(self):
        if self._client is None:
            self._client = await self._client_factory(self.logger)
        return self._client

    async def load(self) -> bool:
        if self._loaded:
            return True
        try:
            client = await self._get_client()
            paths = await client.list_user_paths()
            records = {}
            for object_path in paths:
                try:
                    records[object_path] = await client.get_user_record(object_path)
                except KiwiMenuError as e:
                    self.logger.warning(f"Failed to read account {object_path}: {e}")
        except KiwiMenuError as e:
            self.logger.warning(f"AccountsService is not available: {e}")
            return False
        if self._destroyed:
            return False
        self._records = records
        client.on_user_added(self._on_user_added)
        client.on_user_deleted(self._on_user_deleted)
        for object_path in records:
            client.watch_user(object_path, self._changed_callback(object_path))
        self._loaded = True
        self.logger.info(f"AccountsService loaded with {len(records)} cached users.")
        self._signals.emit(LOADED)
        return True

    def _changed_callback(self, object_path: str) -> Callable[[], None]:
        def on_changed(*_):
            self._concurrency.run_in_async_task(self._refresh_user(object_path))

        return on_changed

    def _on_user_added(self, object_path: str) -> None:
        self._concurrency.run_in_async_task(self._add_user(object_path))

    def _on_user_deleted(self, object_path: str) -> None:
        if self._records.pop(object_path, None) is None:
            return
        if self._client is not None:
            self._client.unwatch_user(object_path)
        self.logger.debug(f"Account removed: {object_path}")
        self._signals.emit(ACCOUNT_REMOVED, object_path)

    async def _add_user(self, object_path: str) -> None:
        try:
            record = await self._client.get_user_record(object_path)
        except KiwiMenuError as e:
            self.logger.warning(f"Failed to read added account {object_path}: {e}")
            return
        if self._destroyed:
            return
        self._records[object_path] = record
        self._client.watch_user(object_path, self._changed_callback(object_path))
        self.logger.debug(f"Account added: {object_path}")
        self._signals.emit(ACCOUNT_ADDED, object_path)

    async def _refresh_user(self, object_path: str) -> None:
        if object_path not in self._records:
            return
        try:
            record = await self._client.get_user_record(object_path)
        except KiwiMenuError as e:
            self.logger.warning(f"Failed to refresh account {object_path}: {e}")
            return
        if self._destroyed or object_path not in self._records:
            return
        self._records[object_path] = record
        self._signals.emit(ACCOUNT_CHANGED, object_path)

    def destroy(self) -> None:
        self._destroyed = True
        self._signals.clear()
        self._concurrency.cleanup_tasks()
        if self._client is not None:
            try:
                self._client.disconnect()
            except Exception as e:
                self.logger.error(f"Failed to disconnect from AccountsService: {e}")
            self._client = None
        self._records = {}
        self._loaded = False
