"""Execution report returned by the plan executor."""

import asyncio
from dataclasses import dataclass, field

from canvas_flow.canvas.types import Connection
from canvas_flow.engine.errors import CanvasFlowError


@dataclass
class ExecutionReport:
    """What one plan execution did.

    ``background_tasks`` holds the un-awaited deletion persistence calls;
    callers that need them settled can ``await report.drain()``.
    """

    plan_id: str | None = None
    registry: dict[str, list[str]] = field(default_factory=dict)
    issues: list[CanvasFlowError] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    background_tasks: list[asyncio.Future] = field(default_factory=list)

    def add_issue(self, issue: CanvasFlowError) -> None:
        self.issues.append(issue)

    def issues_of(self, kind: type[CanvasFlowError]) -> list[CanvasFlowError]:
        return [issue for issue in self.issues if isinstance(issue, kind)]

    async def drain(self) -> None:
        """Wait for background deletion calls; their failures are already logged."""
        if self.background_tasks:
            await asyncio.gather(*self.background_tasks, return_exceptions=True)
