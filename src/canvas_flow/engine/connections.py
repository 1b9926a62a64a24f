"""
Connection resolution.

Turns frame policies (``connectToFrames``), legacy target lists and plain
sequential hand-offs into concrete edges. Every edge is added to the canvas
first and then persisted; a failed persist is recorded as a
``PersistenceFailure`` and the local edge is kept.
"""

import logging
from collections.abc import Callable, Sequence
from typing import assert_never

from canvas_flow.canvas.protocols import CanvasStateProtocol
from canvas_flow.canvas.types import (
    DEFAULT_EDGE_COLOR,
    FIRST_FRAME_COLOR,
    LAST_FRAME_COLOR,
    Connection,
    new_id,
)
from canvas_flow.engine.errors import MissingReference, PersistenceFailure
from canvas_flow.engine.registry import StepRegistry
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.plan.models import ConnectionType, ConnectToFramesConfig, FrameSource

logger = logging.getLogger(__name__)

FIRST_FRAME_LABEL = "First Frame"
LAST_FRAME_LABEL = "Last Frame"


class ConnectionResolver:
    def __init__(
        self,
        canvas: CanvasStateProtocol,
        registry: StepRegistry,
        report: ExecutionReport,
        id_factory: Callable[[str], str] = new_id,
    ):
        self.canvas = canvas
        self.registry = registry
        self.report = report
        self.id_factory = id_factory

    def has_edge(self, from_id: str, to_id: str) -> bool:
        return any(c.from_id == from_id and c.to_id == to_id for c in self.canvas.list_connections())

    async def connect(
        self,
        from_id: str,
        to_id: str,
        color: str = DEFAULT_EDGE_COLOR,
        label: str | None = None,
        dedupe: bool = False,
    ) -> Connection | None:
        """Create one edge; with ``dedupe`` an existing (from, to) pair is left alone."""
        if from_id == to_id:
            logger.warning(f"[Connect] refusing self-loop on {from_id}")
            return None
        if dedupe and self.has_edge(from_id, to_id):
            logger.debug(f"[Connect] edge {from_id} -> {to_id} already exists, skipping")
            return None

        connection = Connection(
            id=self.id_factory("conn"),
            from_id=from_id,
            to_id=to_id,
            color=color,
            label=label,
        )
        self.canvas.add_connection(connection)
        self.report.connections.append(connection)

        try:
            await self.canvas.persist_connector_create(connection)
        except Exception as e:
            failure = PersistenceFailure("connector-create", connection.id, e)
            logger.error(f"[Connect] {failure}")
            self.report.add_issue(failure)
        return connection

    async def connect_pairs(self, pairs: Sequence[tuple[str, str]]) -> list[Connection]:
        created = []
        for from_id, to_id in pairs:
            connection = await self.connect(from_id, to_id)
            if connection:
                created.append(connection)
        return created

    # ------------------------------------------------------------------
    # Frame policies
    # ------------------------------------------------------------------

    def resolve_frame(
        self,
        source: FrameSource,
        step_id: str | None,
        index: int | None,
        explicit_id: str | None,
        default_index: int = 0,
    ) -> str | None:
        if source is FrameSource.USER_UPLOAD:
            return explicit_id
        if step_id is None:
            return explicit_id
        return self.registry.resolve(step_id, default_index if index is None else index)

    async def connect_frames(
        self,
        video_id: str,
        frames: ConnectToFramesConfig,
        step_id: str | None = None,
    ) -> list[Connection]:
        """Wire a video to its frame images; raises ``MissingReference`` when unresolvable."""
        match frames.connection_type:
            case ConnectionType.FIRST_LAST_FRAME:
                first_id = self.resolve_frame(
                    frames.first_frame_source,
                    frames.first_frame_step_id,
                    frames.first_frame_index,
                    frames.first_frame_id,
                )
                last_id = self.resolve_frame(
                    frames.last_frame_source,
                    frames.last_frame_step_id,
                    frames.last_frame_index,
                    frames.last_frame_id,
                    default_index=-1,
                )
                # Both ends or nothing.
                if not first_id or not last_id:
                    raise MissingReference(
                        step_id,
                        f"first/last frame for {video_id} (first={first_id}, last={last_id})",
                    )
                edges = [
                    await self.connect(first_id, video_id, FIRST_FRAME_COLOR, FIRST_FRAME_LABEL, dedupe=True),
                    await self.connect(last_id, video_id, LAST_FRAME_COLOR, LAST_FRAME_LABEL, dedupe=True),
                ]
            case ConnectionType.FIRST_FRAME_ONLY:
                first_id = self.resolve_frame(
                    frames.first_frame_source,
                    frames.first_frame_step_id,
                    frames.first_frame_index,
                    frames.first_frame_id,
                )
                if not first_id:
                    raise MissingReference(step_id, f"first frame for {video_id}")
                edges = [
                    await self.connect(first_id, video_id, FIRST_FRAME_COLOR, FIRST_FRAME_LABEL, dedupe=True)
                ]
            case ConnectionType.IMAGE_TO_VIDEO:
                frame_id = self.resolve_frame(
                    frames.frame_source,
                    frames.frame_step_id,
                    frames.frame_index,
                    frames.frame_id,
                )
                if not frame_id:
                    raise MissingReference(step_id, f"frame for {video_id}")
                edges = [await self.connect(frame_id, video_id, dedupe=True)]
            case _:
                assert_never(frames.connection_type)
        return [edge for edge in edges if edge]

    async def connect_legacy(self, video_id: str, target_ids: Sequence[str]) -> list[Connection]:
        """First target feeds the video as its first frame, a second one as its last frame."""
        edges = []
        if len(target_ids) > 0:
            edges.append(
                await self.connect(target_ids[0], video_id, FIRST_FRAME_COLOR, FIRST_FRAME_LABEL, dedupe=True)
            )
        if len(target_ids) > 1:
            edges.append(
                await self.connect(target_ids[1], video_id, LAST_FRAME_COLOR, LAST_FRAME_LABEL, dedupe=True)
            )
        return [edge for edge in edges if edge]

    async def connect_sources(self, node_id: str, source_ids: Sequence[str]) -> list[Connection]:
        """Connect each source into ``node_id`` (image references, plugin inputs)."""
        edges = []
        for source_id in source_ids:
            edge = await self.connect(source_id, node_id, dedupe=True)
            if edge:
                edges.append(edge)
        return edges
