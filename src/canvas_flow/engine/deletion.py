"""
Deletion cascade.

Removes matching nodes from every category collection, then fires one
un-awaited persistence call per removed id. The tasks are kept on the report
so a caller can settle them; failures are logged and reported.
"""

import asyncio
import logging
from collections.abc import Callable

from canvas_flow.canvas.protocols import CanvasStateProtocol
from canvas_flow.canvas.types import ALL_CATEGORIES, is_plugin_category, normalize_plugin_type
from canvas_flow.engine.errors import PersistenceFailure
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.plan.models import DeleteNodeStep

logger = logging.getLogger(__name__)


def build_predicate(step: DeleteNodeStep, category: str) -> Callable[[str], bool] | None:
    """Match predicate for one category, or None when the category is untouched."""
    target_ids = set(step.target_ids)

    def matches(node_id: str) -> bool:
        return not target_ids or node_id in target_ids

    if step.target_type == "all":
        return matches
    if step.target_type == "plugin":
        if not is_plugin_category(category):
            return None
        if step.plugin_type:
            wanted = normalize_plugin_type(step.plugin_type) or step.plugin_type
            if wanted != category:
                return None
        return matches
    if step.target_type == category:
        return matches
    return None


class DeletionCascade:
    def __init__(self, canvas: CanvasStateProtocol, report: ExecutionReport):
        self.canvas = canvas
        self.report = report

    def run(self, step: DeleteNodeStep) -> list[str]:
        removed: list[str] = []
        for category in ALL_CATEGORIES:
            predicate = build_predicate(step, category)
            if predicate is None:
                continue
            ids = self.canvas.remove_nodes(category, predicate)
            for node_id in ids:
                self._fire_delete(category, node_id)
            removed.extend(ids)

        if step.target_type == "all" and not step.target_ids:
            self.canvas.clear_selection()

        self.report.deleted.extend(removed)
        logger.info(
            f"[Delete] {step.target_type} (plugin={step.plugin_type}, ids={step.target_ids or 'all'}): "
            f"removed {len(removed)} node(s)"
        )
        return removed

    def _fire_delete(self, category: str, node_id: str) -> None:
        task = asyncio.ensure_future(self.canvas.persist_node_delete(category, node_id))

        def _log_failure(done: asyncio.Future) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                failure = PersistenceFailure("node-delete", node_id, exc)
                logger.error(f"[Delete] {failure}")
                self.report.add_issue(failure)

        task.add_done_callback(_log_failure)
        self.report.background_tasks.append(task)
