"""
Transaction Executor

Routes a prepared transaction to the embedded wallet's raw JSON-RPC path or to
the standard submission primitive of the browser wallet, and reports each
submission exactly once through `on_success` or `on_error`.

No retries and no serialization: overlapping submissions from the same
wallet are all sent, and their results may arrive in any order.
"""

import asyncio
from typing import Any, Callable, Optional
import logging

from .base import (
    SendResult,
    TransactionError,
    TransactionFieldSet,
    WalletBackend,
    WalletIdentity,
    WalletUnavailableError,
    normalize_error,
)
from .raw_sender import send_raw_transaction
from .wallet import BrowserWalletContext, EmbeddedWalletContext, resolve_wallet_identity

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[SendResult], Any]
ErrorCallback = Callable[[TransactionError], Any]


class TransactionExecutor:
    """
    Single entry point for contract writes.

    `submitter` is the browser backend's standard primitive: it exposes
    `send_transaction(transaction, on_success=..., on_error=...)` and an
    `is_pending` flag. The embedded backend is driven through
    `send_raw_transaction` with the provider carried by the wallet identity.
    """

    def __init__(
        self,
        submitter: Any,
        embedded: Optional[EmbeddedWalletContext] = None,
        browser: Optional[BrowserWalletContext] = None,
    ):
        self.submitter = submitter
        self._embedded_in_flight = 0
        self._tasks = set()
        self.identity = resolve_wallet_identity(embedded, browser)

    def update_wallets(
        self,
        embedded: Optional[EmbeddedWalletContext] = None,
        browser: Optional[BrowserWalletContext] = None,
    ) -> WalletIdentity:
        """Recompute the active identity after either connection context changed."""
        self.identity = resolve_wallet_identity(embedded, browser)
        logger.debug(f"Active wallet backend: {self.identity.backend.value}")
        return self.identity

    @property
    def is_using_embedded(self) -> bool:
        identity = self.identity
        return (identity.backend is WalletBackend.EMBEDDED
                and bool(identity.address) and identity.provider is not None)

    @property
    def is_embedded_pending(self) -> bool:
        return self._embedded_in_flight > 0

    @property
    def is_pending(self) -> bool:
        return bool(getattr(self.submitter, 'is_pending', False)) or self.is_embedded_pending

    def execute_transaction(
        self,
        transaction: TransactionFieldSet,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[asyncio.Task]:
        """
        Submit a prepared transaction through the active backend.

        Embedded submissions need a running event loop; without one the call
        fails through `on_error`. Returns the task driving the submission
        (None when it failed synchronously). The executor keeps the task
        alive, so callers may await it or ignore it; results arrive through
        the callbacks.
        """
        identity = self.identity

        if identity.backend is WalletBackend.EMBEDDED:
            if not identity.address:
                self._report_error(on_error, WalletUnavailableError("Embedded wallet address unavailable"))
                return None
            if identity.provider is None:
                self._report_error(on_error, WalletUnavailableError(
                    "Embedded wallet provider unavailable. Please reconnect your embedded wallet."
                ))
                return None

            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                self._report_error(on_error, normalize_error(e))
                return None

            self._embedded_in_flight += 1
            task = loop.create_task(
                self._send_embedded(transaction, identity, on_success, on_error)
            )
            # The loop only holds weak references to tasks
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return task

        if identity.backend is WalletBackend.BROWSER:
            return self.submitter.send_transaction(
                transaction, on_success=on_success, on_error=on_error
            )

        self._report_error(on_error, WalletUnavailableError("No wallet connected"))
        return None

    async def _send_embedded(
        self,
        transaction: TransactionFieldSet,
        identity: WalletIdentity,
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback],
    ) -> None:
        result = None
        error = None
        try:
            result = await send_raw_transaction(transaction, identity.provider, identity.address)
        except Exception as e:
            error = normalize_error(e)
            logger.warning(f"Embedded wallet transaction failed: {error}")
        finally:
            self._embedded_in_flight -= 1

        if error is not None:
            self._report_error(on_error, error)
        elif on_success is not None:
            on_success(result)

    @staticmethod
    def _report_error(on_error: Optional[ErrorCallback], error: TransactionError) -> None:
        if on_error is not None:
            on_error(error)
        else:
            logger.error(f"Unhandled transaction error: {error}")
