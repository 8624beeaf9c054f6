"""
States, events and the transition table of the barcode intake flow.

Each state is its own frozen dataclass carrying exactly the data that is
valid in that state, so a `ProductFound` always has a product and no other
state has one. `transition()` is pure: it maps (state, event) to the next
state or raises `InvalidTransition`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Union

from .schemas import Product


class FlowState(str, enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SEARCHING = "searching"
    PRODUCT_FOUND = "product-found"
    PRODUCT_NOT_FOUND = "product-not-found"
    CREATING_NEW = "creating-new"
    ASSOCIATING_EXISTING = "associating-existing"
    LOOKUP_FAILED = "lookup-failed"


class FlowEvent(str, enum.Enum):
    START_SCANNING = "start_scanning"
    BARCODE_SCANNED = "barcode_scanned"
    LOOKUP_FOUND = "lookup_found"
    LOOKUP_NOT_FOUND = "lookup_not_found"
    LOOKUP_FAILED = "lookup_failed"
    CREATE_NEW = "create_new"
    ASSOCIATE_EXISTING = "associate_existing"
    PRODUCT_CREATED = "product_created"
    PRODUCT_ASSOCIATED = "product_associated"
    CANCEL = "cancel"
    RESET = "reset"


@dataclass
class InvalidTransition(Exception):
    code: str
    detail: List[Dict[str, str]]

    def __str__(self) -> str:
        return "; ".join(item["reason"] for item in self.detail) or self.code


# ---------------------------------------------------------------------------
# STATES
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    kind: ClassVar[FlowState] = FlowState.IDLE


@dataclass(frozen=True)
class Scanning:
    kind: ClassVar[FlowState] = FlowState.SCANNING


@dataclass(frozen=True)
class Searching:
    code: str
    token: int
    kind: ClassVar[FlowState] = FlowState.SEARCHING


@dataclass(frozen=True)
class ProductFound:
    code: str
    product: Product
    kind: ClassVar[FlowState] = FlowState.PRODUCT_FOUND


@dataclass(frozen=True)
class ProductNotFound:
    code: str
    kind: ClassVar[FlowState] = FlowState.PRODUCT_NOT_FOUND


@dataclass(frozen=True)
class CreatingNew:
    code: str
    kind: ClassVar[FlowState] = FlowState.CREATING_NEW


@dataclass(frozen=True)
class AssociatingExisting:
    code: str
    kind: ClassVar[FlowState] = FlowState.ASSOCIATING_EXISTING


@dataclass(frozen=True)
class LookupFailedState:
    code: str
    error: str
    kind: ClassVar[FlowState] = FlowState.LOOKUP_FAILED


ScanState = Union[
    Idle,
    Scanning,
    Searching,
    ProductFound,
    ProductNotFound,
    CreatingNew,
    AssociatingExisting,
    LookupFailedState,
]


# ---------------------------------------------------------------------------
# TRANSITION TABLE
# ---------------------------------------------------------------------------

# Events accepted in every state.
GLOBAL_TRANSITIONS: Dict[FlowEvent, FlowState] = {
    FlowEvent.START_SCANNING: FlowState.SCANNING,
    FlowEvent.CANCEL: FlowState.IDLE,
    FlowEvent.RESET: FlowState.IDLE,
}

TRANSITIONS: Dict[FlowState, Dict[FlowEvent, FlowState]] = {
    FlowState.IDLE: {},
    FlowState.SCANNING: {
        FlowEvent.BARCODE_SCANNED: FlowState.SEARCHING,
    },
    FlowState.SEARCHING: {
        FlowEvent.LOOKUP_FOUND: FlowState.PRODUCT_FOUND,
        FlowEvent.LOOKUP_NOT_FOUND: FlowState.PRODUCT_NOT_FOUND,
        FlowEvent.LOOKUP_FAILED: FlowState.LOOKUP_FAILED,
    },
    FlowState.PRODUCT_FOUND: {},
    FlowState.PRODUCT_NOT_FOUND: {
        FlowEvent.CREATE_NEW: FlowState.CREATING_NEW,
        FlowEvent.ASSOCIATE_EXISTING: FlowState.ASSOCIATING_EXISTING,
    },
    FlowState.CREATING_NEW: {
        FlowEvent.PRODUCT_CREATED: FlowState.PRODUCT_FOUND,
    },
    FlowState.ASSOCIATING_EXISTING: {
        FlowEvent.PRODUCT_ASSOCIATED: FlowState.PRODUCT_FOUND,
    },
    FlowState.LOOKUP_FAILED: {},
}


def allowed_events(state: FlowState) -> FrozenSet[FlowEvent]:
    return frozenset(TRANSITIONS[state]) | frozenset(GLOBAL_TRANSITIONS)


def _target(state: ScanState, event: FlowEvent) -> FlowState:
    target = GLOBAL_TRANSITIONS.get(event)
    if target is None:
        target = TRANSITIONS[state.kind].get(event)
    if target is None:
        raise InvalidTransition(
            code="invalid_transition",
            detail=[
                {
                    "field": "state",
                    "reason": f"Cannot handle {event.value} while {state.kind.value}",
                }
            ],
        )
    return target


def _require(value: Any, name: str, event: FlowEvent) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidTransition(
            code="missing_requirements",
            detail=[{"field": name, "reason": f"{name} required for {event.value}"}],
        )
    return value


def transition(
    state: ScanState,
    event: FlowEvent,
    *,
    code: Optional[str] = None,
    token: Optional[int] = None,
    product: Optional[Product] = None,
    error: Optional[str] = None,
) -> ScanState:
    """Return the state that follows `state` on `event`."""
    target = _target(state, event)

    if target == FlowState.IDLE:
        return Idle()
    if target == FlowState.SCANNING:
        return Scanning()
    if target == FlowState.SEARCHING:
        return Searching(
            code=_require(code, "code", event).strip(),
            token=_require(token, "token", event),
        )

    # Every remaining state carries the code of the scan that led to it.
    current_code = getattr(state, "code")
    if target == FlowState.PRODUCT_FOUND:
        return ProductFound(code=current_code, product=_require(product, "product", event))
    if target == FlowState.PRODUCT_NOT_FOUND:
        return ProductNotFound(code=current_code)
    if target == FlowState.CREATING_NEW:
        return CreatingNew(code=current_code)
    if target == FlowState.ASSOCIATING_EXISTING:
        return AssociatingExisting(code=current_code)
    return LookupFailedState(code=current_code, error=error or "Lookup failed")
