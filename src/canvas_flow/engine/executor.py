"""
Plan executor.

Runs an instruction plan step by step against an injected canvas state.
Steps run strictly in order and nodes inside a create step are materialized
one at a time, so later nodes can reference earlier ones through the
registry. Anticipated failures (``CanvasFlowError``) are logged, recorded on
the report and execution continues; anything else propagates.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, assert_never

from canvas_flow.canvas.protocols import CanvasStateProtocol
from canvas_flow.canvas.types import new_id
from canvas_flow.config import Settings, get_settings
from canvas_flow.engine.connections import ConnectionResolver
from canvas_flow.engine.deletion import DeletionCascade
from canvas_flow.engine.errors import CanvasFlowError, ConfigMismatch, MissingReference
from canvas_flow.engine.layout import LayoutAllocator, LayoutConfig
from canvas_flow.engine.materializer import NodeMaterializer
from canvas_flow.engine.registry import StepRegistry
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.plan.models import (
    ConnectSequentiallyStep,
    CreateNodeStep,
    DeleteNodeStep,
    GroupNodesStep,
    InstructionPlan,
    NodeConfig,
)
from canvas_flow.plan.validator import validate_plan

logger = logging.getLogger(__name__)


@dataclass
class ExecutionEnvironment:
    """Collaborators and knobs for one execution.

    ``selection`` overrides the canvas selection; when None the canvas
    selection is read each time a node needs it.
    """

    canvas: CanvasStateProtocol
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    selection: list[str] | None = None
    id_factory: Callable[[str], str] = new_id
    settings: Settings | None = None


def sequential_pairs(from_ids: list[str], to_ids: list[str] | None) -> list[tuple[str, str]]:
    """Edges for a CONNECT_SEQUENTIALLY step.

    Equal-length groups hand off ``from[i] -> to[i+1]``; otherwise the shorter
    side is padded (from side with its last id, to side with its first) and
    paired by index. Without a target group the source group is chained.
    """
    if to_ids:
        if len(from_ids) == len(to_ids) and len(from_ids) > 1:
            return [(from_ids[i], to_ids[i + 1]) for i in range(len(from_ids) - 1)]
        pairs = []
        for i in range(max(len(from_ids), len(to_ids))):
            src = from_ids[i] if i < len(from_ids) else from_ids[-1]
            dst = to_ids[i] if i < len(to_ids) else to_ids[0]
            pairs.append((src, dst))
        return pairs
    if len(from_ids) > 1:
        return list(zip(from_ids, from_ids[1:]))
    return []


class PlanExecutor:
    def __init__(self, env: ExecutionEnvironment):
        self.env = env
        self.settings = env.settings or get_settings()

    async def execute(self, plan: InstructionPlan | dict[str, Any]) -> ExecutionReport:
        if not isinstance(plan, InstructionPlan):
            plan = InstructionPlan.model_validate(plan)

        for finding in validate_plan(plan):
            logger.warning(f"[Engine] plan {plan.id}: {finding}")

        canvas = self.env.canvas

        self.report = ExecutionReport(plan_id=plan.id)
        self.registry = StepRegistry()
        self.layout = LayoutAllocator.for_plan(plan, canvas.viewport.center, self.env.layout)
        self.connections = ConnectionResolver(canvas, self.registry, self.report, self.env.id_factory)
        self.materializer = NodeMaterializer(
            canvas,
            self.connections,
            self.report,
            layout_config=self.env.layout,
            settings=self.settings,
            selection=self.env.selection,
            id_factory=self.env.id_factory,
        )
        self.deletion = DeletionCascade(canvas, self.report)

        logger.info(f"[Engine] executing plan {plan.id} ({len(plan.steps)} steps): {plan.summary}")
        for index, step in enumerate(plan.steps):
            logger.debug(f"[Engine] step {index + 1}/{len(plan.steps)}: {step.action} {step.id}")
            try:
                await self._dispatch(step)
            except CanvasFlowError as e:
                logger.warning(f"[Engine] step {step.id} skipped: {e}")
                self.report.add_issue(e)

        self.report.registry = self.registry.snapshot()
        logger.info(
            f"[Engine] plan {plan.id} done: {len(self.report.created)} created, "
            f"{len(self.report.connections)} connections, {len(self.report.deleted)} deleted, "
            f"{len(self.report.issues)} issue(s)"
        )
        return self.report

    async def _dispatch(self, step) -> None:
        match step:
            case CreateNodeStep():
                await self._create_nodes(step)
            case ConnectSequentiallyStep():
                await self._connect_sequentially(step)
            case GroupNodesStep():
                logger.info(f"[Engine] GROUP_NODES {step.id} recognized; grouping is not applied")
            case DeleteNodeStep():
                self.deletion.run(step)
            case _:
                assert_never(step)

    def _node_configs(self, step: CreateNodeStep) -> list[NodeConfig]:
        overrides = step.batch_configs
        if len(overrides) > step.count:
            mismatch = ConfigMismatch(step.id, step.count, len(overrides))
            logger.warning(f"[Engine] {mismatch}")
            self.report.add_issue(mismatch)
            overrides = overrides[: step.count]
        return [
            step.config_template.merged(overrides[i] if i < len(overrides) else None)
            for i in range(step.count)
        ]

    async def _create_nodes(self, step: CreateNodeStep) -> None:
        configs = self._node_configs(step)
        # Reject the whole step before the first node exists.
        for config in configs:
            self.materializer.validate(step.node_type, config)

        node_ids: list[str] = []
        self.registry.record(step.id, node_ids)
        for index, config in enumerate(configs):
            position = self.layout.position_for(step.node_type, config, index)
            record = await self.materializer.materialize(step.node_type, config, position, step.id)
            node_ids.append(record.id)
            self.registry.record(step.id, node_ids)

        self.layout.advance_step()
        logger.info(f"[Engine] {step.id}: created {len(node_ids)} {step.node_type.value} node(s)")

    async def _connect_sequentially(self, step: ConnectSequentiallyStep) -> None:
        from_ids = self.registry.get(step.from_step_id)
        if not from_ids:
            raise MissingReference(step.id, f"fromStepId={step.from_step_id}")

        to_ids = None
        if step.to_step_id:
            to_ids = self.registry.get(step.to_step_id)
            if not to_ids:
                missing = MissingReference(step.id, f"toStepId={step.to_step_id}")
                logger.warning(f"[Engine] {missing}; chaining {step.from_step_id} instead")
                self.report.add_issue(missing)

        pairs = sequential_pairs(from_ids, to_ids)
        if not pairs:
            logger.warning(f"[Engine] {step.id}: nothing to connect for {step.from_step_id}")
            return
        created = await self.connections.connect_pairs(pairs)
        logger.info(f"[Engine] {step.id}: {len(created)} sequential connection(s)")


async def execute_plan(plan: InstructionPlan | dict[str, Any], env: ExecutionEnvironment) -> ExecutionReport:
    """Execute a plan against ``env`` and report what happened."""
    return await PlanExecutor(env).execute(plan)
