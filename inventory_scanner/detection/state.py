"""
==============================================================================
Scanner Session State Module
==============================================================================

Lifecycle state owned by one detection session.

State Machine:
-------------

    ┌───────────────┐  initialize()  ┌──────────────┐   device ok   ┌───────┐
    │ UNINITIALIZED │ ─────────────▶ │ INITIALIZING │ ────────────▶ │ READY │
    └───────────────┘                └──────────────┘               └───────┘
        ▲    │                              │ device failed           │   ▲
        │    │ initialize() one-shot        ▼                         │   │
        │    └──────────────────────▶ UNINITIALIZED     start_streaming() stop_streaming()
        │                                                             ▼   │
        │              cleanup()                                ┌───────────┐
        └────────────────────────────────────────────────────── │ STREAMING │
                                                                └───────────┘

Valid Transitions:
- UNINITIALIZED → INITIALIZING (camera source acquisition begins)
- UNINITIALIZED → READY (one-shot source, no device)
- INITIALIZING → READY (device granted)
- INITIALIZING → UNINITIALIZED (device denied / failed)
- READY → STREAMING, STREAMING → READY
- READY → UNINITIALIZED, STREAMING → UNINITIALIZED (cleanup)

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, FrozenSet

from inventory_scanner.core.exceptions import InvalidState


# Module logger
logger = logging.getLogger(__name__)


class ScannerState(str, enum.Enum):
    """Lifecycle states of a detection session."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    STREAMING = "streaming"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value

    @property
    def is_ready(self) -> bool:
        """Check if detection sources are acquired."""
        return self in (ScannerState.READY, ScannerState.STREAMING)


TRANSITIONS: Dict[ScannerState, FrozenSet[ScannerState]] = {
    ScannerState.UNINITIALIZED: frozenset({ScannerState.INITIALIZING, ScannerState.READY}),
    ScannerState.INITIALIZING: frozenset({ScannerState.READY, ScannerState.UNINITIALIZED}),
    ScannerState.READY: frozenset({ScannerState.STREAMING, ScannerState.UNINITIALIZED}),
    ScannerState.STREAMING: frozenset({ScannerState.READY, ScannerState.UNINITIALIZED}),
}


class SessionState:
    """
    Current lifecycle state of one session, guarded by TRANSITIONS.

    Example:
        >>> state = SessionState()
        >>> state.transition(ScannerState.READY)
        >>> state.value
        <ScannerState.READY: 'ready'>
    """

    def __init__(self) -> None:
        self._value = ScannerState.UNINITIALIZED

    @property
    def value(self) -> ScannerState:
        return self._value

    def can_transition(self, target: ScannerState) -> bool:
        """Check whether moving to target is allowed."""
        return target in TRANSITIONS[self._value]

    def transition(self, target: ScannerState) -> None:
        """
        Move to target state.

        Raises:
            InvalidState: If the transition is not allowed
        """
        if not self.can_transition(target):
            raise InvalidState(
                f"Invalid scanner state transition: {self._value} -> {target}"
            )
        logger.debug(f"Scanner state: {self._value} -> {target}")
        self._value = target

    def reset(self) -> None:
        """Return to UNINITIALIZED from any state."""
        if self._value != ScannerState.UNINITIALIZED:
            logger.debug(f"Scanner state: {self._value} -> {ScannerState.UNINITIALIZED}")
        self._value = ScannerState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"SessionState({self._value.value!r})"
