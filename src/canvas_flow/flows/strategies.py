"""
Flow strategies: turn frame prompts into image and video nodes.

Sequential
    one image per segment feeding one video (IMAGE_TO_VIDEO); with the
    ``sequential-frames`` template the videos are also chained in order.

First-Last-Frame
    two images per segment (opening and closing frame) feeding the same
    video as its first and last frame; videos are independent.

Scene frames and closing frames go in the middle column, opening frames in the
left column and videos in the right column.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from canvas_flow.canvas.protocols import PromptCompletionProtocol
from canvas_flow.canvas.types import Connection
from canvas_flow.config import Settings, get_settings
from canvas_flow.engine.connections import ConnectionResolver
from canvas_flow.engine.executor import ExecutionEnvironment
from canvas_flow.engine.layout import Column, LayoutAllocator
from canvas_flow.engine.materializer import NodeMaterializer
from canvas_flow.engine.registry import StepRegistry
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.flows.catalog import max_duration_for
from canvas_flow.flows.script import FramePrompt, ScriptFlow, ScriptFlowGenerator, VideoFlowConfig
from canvas_flow.plan.models import ConnectionType, ConnectToFramesConfig, NodeConfig, NodeKind

logger = logging.getLogger(__name__)

FRAME_EXCERPT = 200


class FlowTemplate(str, Enum):
    SEQUENTIAL_FRAMES = "sequential-frames"
    FIRST_LAST_FRAME = "first-last-frame"


@dataclass
class FlowResult:
    template_id: str
    script: ScriptFlow
    image_ids: list[str] = field(default_factory=list)
    video_ids: list[str] = field(default_factory=list)
    report: ExecutionReport = field(default_factory=ExecutionReport)

    @property
    def connections(self) -> list[Connection]:
        return self.report.connections


def opening_prompt(frame: FramePrompt) -> str:
    if frame.scene_script:
        return f"Opening scene: {frame.scene_script[:FRAME_EXCERPT]}..."
    return f"{frame.prompt}, opening frame, beginning of scene"


def closing_prompt(frame: FramePrompt) -> str:
    if frame.scene_script:
        return f"Closing scene: {frame.scene_script[-FRAME_EXCERPT:]}"
    return f"{frame.prompt}, closing frame, ending of scene"


class FlowStrategy(ABC):
    """Shared node-building plumbing for the two strategies."""

    # Nodes each segment adds to a column.
    columns: ClassVar[dict[Column, int]]

    def __init__(self, env: ExecutionEnvironment, settings: Settings | None = None):
        self.env = env
        self.settings = env.settings or settings or get_settings()
        self.report = ExecutionReport()
        self.registry = StepRegistry()
        self.connections = ConnectionResolver(env.canvas, self.registry, self.report, env.id_factory)
        self.materializer = NodeMaterializer(
            env.canvas,
            self.connections,
            self.report,
            layout_config=env.layout,
            settings=self.settings,
            selection=[],
            id_factory=env.id_factory,
        )

    def layout_for(self, segment_count: int) -> LayoutAllocator:
        counts = {column: per_segment * segment_count for column, per_segment in self.columns.items()}
        return LayoutAllocator(self.env.canvas.viewport.center, self.env.layout, counts)

    def image_config(self, config: VideoFlowConfig, prompt: str) -> NodeConfig:
        return NodeConfig(
            prompt=prompt,
            model=self.settings.default_image_model,
            aspect_ratio=config.aspect_ratio,
            resolution="1024",
        )

    def video_config(
        self,
        config: VideoFlowConfig,
        frame: FramePrompt,
        frames: ConnectToFramesConfig,
    ) -> NodeConfig:
        return NodeConfig(
            prompt=frame.prompt,
            model=config.model,
            aspect_ratio=config.aspect_ratio,
            duration=max_duration_for(config.model),
            resolution=config.resolution or "720p",
            connect_to_frames=frames,
        )

    async def add_node(
        self,
        step_id: str,
        kind: NodeKind,
        node_config: NodeConfig,
        layout: LayoutAllocator,
        column: Column,
    ) -> str:
        record = await self.materializer.materialize(kind, node_config, layout.place(column), step_id)
        ids = self.registry.get(step_id) or []
        ids.append(record.id)
        self.registry.record(step_id, ids)
        return record.id

    @abstractmethod
    async def run(self, config: VideoFlowConfig, flow: ScriptFlow, template_id: str) -> FlowResult:
        """Build the nodes and edges for ``flow``."""


class SequentialFlow(FlowStrategy):
    columns: ClassVar[dict[Column, int]] = {Column.MIDDLE: 1, Column.RIGHT: 1}

    async def run(self, config: VideoFlowConfig, flow: ScriptFlow, template_id: str) -> FlowResult:
        result = FlowResult(template_id=template_id, script=flow, report=self.report)
        layout = self.layout_for(len(flow.frames))

        for frame in flow.frames:
            image_id = await self.add_node(
                "frames", NodeKind.IMAGE_GENERATOR, self.image_config(config, frame.prompt), layout, Column.MIDDLE
            )
            result.image_ids.append(image_id)

        for frame in flow.frames:
            frames = ConnectToFramesConfig(
                connection_type=ConnectionType.IMAGE_TO_VIDEO,
                frame_step_id="frames",
                frame_index=frame.frame_index,
            )
            video_id = await self.add_node(
                "videos", NodeKind.VIDEO_GENERATOR, self.video_config(config, frame, frames), layout, Column.RIGHT
            )
            result.video_ids.append(video_id)

        if template_id == FlowTemplate.SEQUENTIAL_FRAMES.value and len(result.video_ids) > 1:
            await self.connections.connect_pairs(list(zip(result.video_ids, result.video_ids[1:])))
        return result


class FirstLastFrameFlow(FlowStrategy):
    columns: ClassVar[dict[Column, int]] = {Column.LEFT: 1, Column.MIDDLE: 1, Column.RIGHT: 1}

    async def run(self, config: VideoFlowConfig, flow: ScriptFlow, template_id: str) -> FlowResult:
        result = FlowResult(template_id=template_id, script=flow, report=self.report)
        layout = self.layout_for(len(flow.frames))

        for i, frame in enumerate(flow.frames):
            first_id = await self.add_node(
                "first-frames",
                NodeKind.IMAGE_GENERATOR,
                self.image_config(config, opening_prompt(frame)),
                layout,
                Column.LEFT,
            )
            last_id = await self.add_node(
                "last-frames",
                NodeKind.IMAGE_GENERATOR,
                self.image_config(config, closing_prompt(frame)),
                layout,
                Column.MIDDLE,
            )
            result.image_ids.extend([first_id, last_id])

            frames = ConnectToFramesConfig(
                connection_type=ConnectionType.FIRST_LAST_FRAME,
                first_frame_step_id="first-frames",
                first_frame_index=i,
                last_frame_step_id="last-frames",
                last_frame_index=i,
            )
            video_id = await self.add_node(
                "videos", NodeKind.VIDEO_GENERATOR, self.video_config(config, frame, frames), layout, Column.RIGHT
            )
            result.video_ids.append(video_id)
        return result


def normalize_template_id(template_id: str | None) -> str:
    return (template_id or "").strip().lower()


async def execute_video_flow(
    config: VideoFlowConfig,
    template_id: str | None,
    env: ExecutionEnvironment,
    prompt_service: PromptCompletionProtocol | None = None,
) -> FlowResult:
    """Generate the script and frame prompts, then build the chosen topology."""
    settings = env.settings or get_settings()
    template = normalize_template_id(template_id)
    strategy_cls = FirstLastFrameFlow if template == FlowTemplate.FIRST_LAST_FRAME.value else SequentialFlow
    logger.info(
        f"[VideoFlow] template={template_id!r} -> {strategy_cls.__name__}, "
        f"{config.total_duration:g}s topic={config.topic!r}"
    )

    flow = await ScriptFlowGenerator(prompt_service, settings).generate(config)
    strategy = strategy_cls(env, settings)
    result = await strategy.run(config, flow, template)
    for issue in flow.issues:
        result.report.add_issue(issue)
    result.report.registry = strategy.registry.snapshot()

    logger.info(
        f"[VideoFlow] created {len(result.image_ids)} image(s), {len(result.video_ids)} video(s), "
        f"{len(result.connections)} connection(s)"
    )
    return result
