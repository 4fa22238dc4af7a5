"""Position lifecycle — state machine, ledger, sizing and execution."""

from updown_core.positions.execution import (
    Executor,
    LiveExecutor,
    MockExecutor,
    build_executor,
)
from updown_core.positions.ledger import Ledger
from updown_core.positions.manager import InvariantViolation, PositionManager

__all__ = [
    "Executor",
    "InvariantViolation",
    "Ledger",
    "LiveExecutor",
    "MockExecutor",
    "PositionManager",
    "build_executor",
]
