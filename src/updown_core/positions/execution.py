"""Order execution — mock fills for paper runs, external submitter for live."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from updown_core.config.schema import ExecutionConfig
from updown_core.models.position import ExecutionRequest, ExecutionResult

log = structlog.get_logger("execution")

OrderSubmitter = Callable[[ExecutionRequest], Awaitable[ExecutionResult]]


class Executor(Protocol):
    async def execute(self, request: ExecutionRequest) -> ExecutionResult: ...


class MockExecutor:
    """Fills every order immediately at its reference price."""

    def __init__(self) -> None:
        self.requests: list[ExecutionRequest] = []

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        self.requests.append(request)
        log.info(
            "mock_order_filled",
            asset=request.asset.value,
            direction=request.direction,
            size_usd=round(request.size_usd, 2),
            price=request.reference_price,
        )
        return ExecutionResult(filled=True, fill_price=request.reference_price)


class LiveExecutor:
    """Delegates to an externally supplied order submitter.

    Signing and submission live outside this package; any error raised by
    the submitter is reported as an unfilled result.
    """

    def __init__(self, submitter: OrderSubmitter) -> None:
        self._submit = submitter

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        try:
            return await self._submit(request)
        except Exception as exc:
            log.exception("live_order_failed", asset=request.asset.value)
            return ExecutionResult(filled=False, error=str(exc) or type(exc).__name__)


def build_executor(config: ExecutionConfig, submitter: OrderSubmitter | None = None) -> Executor:
    if config.mode == "live":
        if submitter is None:
            raise ValueError("live execution requires an order submitter")
        return LiveExecutor(submitter)
    return MockExecutor()
