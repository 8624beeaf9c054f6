"""
Barcode intake flow controller.

Drives one scan session through scan -> lookup -> outcome:

    idle -> scanning -> searching -> product-found
                                  -> product-not-found -> creating-new -> product-found
                                                       -> associating-existing -> product-found
                                  -> lookup-failed

`start_scanning`, `handle_cancel` and `reset` are accepted from any state.
The lookup runs as an asyncio task; its result is applied only while the
session is still searching for the same code under the same request token,
so a result that arrives after a cancel or a newer scan is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Set

from .lookup import LookupFailed, ProductLookup
from .schemas import Product
from .states import (
    FlowEvent,
    FlowState,
    Idle,
    InvalidTransition,
    ScanState,
    Searching,
    transition,
)

logger = logging.getLogger(__name__)

Listener = Callable[[ScanState, ScanState], None]


class BarcodeFlow:
    def __init__(self, lookup: ProductLookup):
        self._lookup = lookup
        self._state: ScanState = Idle()
        self._token = 0
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Session view
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> ScanState:
        return self._state

    @property
    def state(self) -> FlowState:
        return self._state.kind

    @property
    def code(self) -> Optional[str]:
        return getattr(self._state, "code", None)

    @property
    def product(self) -> Optional[Product]:
        return getattr(self._state, "product", None)

    @property
    def error(self) -> Optional[str]:
        return getattr(self._state, "error", None)

    @property
    def is_loading(self) -> bool:
        return self._state.kind == FlowState.SEARCHING

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(previous, current)` after every transition."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, event: FlowEvent, **payload) -> ScanState:
        return self._enter(event, transition(self._state, event, **payload))

    def _enter(self, event: FlowEvent, state: ScanState) -> ScanState:
        previous = self._state
        self._state = state
        logger.debug(
            "Barcode flow %s: %s -> %s",
            event.value,
            previous.kind.value,
            self._state.kind.value,
        )
        for listener in list(self._listeners):
            listener(previous, self._state)
        return self._state

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def start_scanning(self) -> ScanState:
        return self._apply(FlowEvent.START_SCANNING)

    def handle_barcode_scanned(self, code: str) -> "asyncio.Task[Optional[ScanState]]":
        """
        Move to searching for `code` and schedule its lookup.

        Must be called from a running event loop. Returns the lookup task;
        it resolves to the state the result produced, or None when the
        result was stale and discarded.
        """
        token = self._token + 1
        state = transition(self._state, FlowEvent.BARCODE_SCANNED, code=code, token=token)
        loop = asyncio.get_running_loop()
        self._token = token
        self._enter(FlowEvent.BARCODE_SCANNED, state)

        task = loop.create_task(self._run_lookup(token, state.code))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def submit(self, code: str) -> ScanState:
        """Scan `code` and wait for its lookup to settle."""
        await self.handle_barcode_scanned(code)
        return self._state

    def handle_create_new(self) -> ScanState:
        return self._apply(FlowEvent.CREATE_NEW)

    def handle_associate_existing(self) -> ScanState:
        return self._apply(FlowEvent.ASSOCIATE_EXISTING)

    def handle_product_created(self, product: Product) -> ScanState:
        return self._apply(FlowEvent.PRODUCT_CREATED, product=product)

    def handle_product_associated(self, product: Product) -> ScanState:
        return self._apply(FlowEvent.PRODUCT_ASSOCIATED, product=product)

    def handle_cancel(self) -> ScanState:
        return self._apply(FlowEvent.CANCEL)

    def reset(self) -> ScanState:
        return self._apply(FlowEvent.RESET)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _is_current(self, token: int, code: str) -> bool:
        state = self._state
        return isinstance(state, Searching) and state.token == token and state.code == code

    async def _run_lookup(self, token: int, code: str) -> Optional[ScanState]:
        try:
            product = await self._lookup.find_by_barcode(code)
        except LookupFailed as exc:
            return self._complete(token, code, FlowEvent.LOOKUP_FAILED, error=str(exc))
        except Exception as exc:
            # Any other error must still settle the search.
            logger.exception("Unexpected error looking up %s", code)
            return self._complete(
                token, code, FlowEvent.LOOKUP_FAILED, error=f"Unexpected lookup error: {exc}"
            )
        if product is None:
            return self._complete(token, code, FlowEvent.LOOKUP_NOT_FOUND)
        return self._complete(token, code, FlowEvent.LOOKUP_FOUND, product=product)

    def _complete(self, token: int, code: str, event: FlowEvent, **payload) -> Optional[ScanState]:
        if not self._is_current(token, code):
            logger.debug("Discarding stale lookup result for %s (request %s)", code, token)
            return None
        if event == FlowEvent.LOOKUP_FAILED:
            logger.warning("Barcode lookup failed for %s: %s", code, payload.get("error"))
        return self._apply(event, **payload)

    async def aclose(self) -> None:
        """Cancel lookups still in flight."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


__all__ = ["BarcodeFlow", "InvalidTransition"]
