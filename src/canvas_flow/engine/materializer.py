"""
Node materialization.

Builds the kind-specific fields for a node, hands the record to the canvas
state, persists it and applies the kind's auto-connect rule:

- video:  ``connectToFrames`` policy, else legacy targets (or selection)
- image:  targets feed the image as references
- plugin: the source image feeds the plugin
"""

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any, assert_never

from canvas_flow.canvas.protocols import CanvasStateProtocol
from canvas_flow.canvas.types import (
    IMAGE,
    MUSIC,
    TEXT,
    VIDEO,
    NodeRecord,
    Position,
    new_id,
    normalize_plugin_type,
)
from canvas_flow.config import Settings, get_settings
from canvas_flow.engine.connections import ConnectionResolver
from canvas_flow.engine.errors import CanvasFlowError, PersistenceFailure, UserInputValidation
from canvas_flow.engine.layout import LayoutConfig
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.plan.models import NodeConfig, NodeKind

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@([\w-]+)")

PLUGIN_DEFAULTS: dict[str, dict[str, Any]] = {
    "upscale": {"model": "Crystal Upscaler", "scale": 2, "frameWidth": 400, "frameHeight": 300},
    "remove-bg": {"model": "Fast Remove BG", "frameWidth": 400, "frameHeight": 300},
    "vectorize": {"mode": "detailed", "frameWidth": 400, "frameHeight": 300},
    "erase": {"model": "Flux-1.1-Pro-Fill", "frameWidth": 500, "frameHeight": 400},
    "expand": {"model": "Flux-1.1-Pro-Fill", "frameWidth": 500, "frameHeight": 400},
}

# Display names some planners use instead of the model id.
PLUGIN_MODEL_ALIASES = {
    "Upscale": "Crystal Upscaler",
    "Remove BG": "Fast Remove BG",
}


def image_url_of(record: NodeRecord | None) -> str | None:
    if record is None:
        return None
    fields = record.fields
    return fields.get("generatedImageUrl") or fields.get("sourceImageUrl") or fields.get("url")


class NodeMaterializer:
    def __init__(
        self,
        canvas: CanvasStateProtocol,
        connections: ConnectionResolver,
        report: ExecutionReport,
        layout_config: LayoutConfig | None = None,
        settings: Settings | None = None,
        selection: Sequence[str] | None = None,
        id_factory: Callable[[str], str] = new_id,
    ):
        self.canvas = canvas
        self.connections = connections
        self.report = report
        self.layout_config = layout_config or LayoutConfig()
        self.settings = settings or get_settings()
        self.selection = list(selection) if selection is not None else None
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Pure part
    # ------------------------------------------------------------------

    def category_for(self, kind: NodeKind, config: NodeConfig) -> str:
        match kind:
            case NodeKind.IMAGE_GENERATOR:
                return IMAGE
            case NodeKind.VIDEO_GENERATOR:
                return VIDEO
            case NodeKind.MUSIC_GENERATOR:
                return MUSIC
            case NodeKind.TEXT:
                return TEXT
            case NodeKind.PLUGIN:
                category = normalize_plugin_type(config.plugin_type)
                if category is None:
                    raise UserInputValidation(f"Unknown plugin type: {config.plugin_type or '(none)'}")
                return category
            case _:
                assert_never(kind)

    def current_selection(self) -> list[str]:
        """The explicit selection override, else the canvas selection as it is now."""
        if self.selection is not None:
            return list(self.selection)
        return list(self.canvas.selected_ids)

    def source_ids(self, config: NodeConfig) -> list[str]:
        if config.target_ids:
            return list(config.target_ids)
        return self.current_selection()

    def validate(self, kind: NodeKind, config: NodeConfig) -> None:
        """Reject configs that cannot be materialized; never touches the canvas."""
        category = self.category_for(kind, config)
        if kind is NodeKind.PLUGIN and not (config.source_image_url or self.source_ids(config)):
            raise UserInputValidation(
                f"Select an image or provide a source image before applying {category}."
            )

    def reference_urls(self, config: NodeConfig) -> list[str]:
        """Explicit reference wins outright; otherwise @mentions of existing images."""
        if config.reference_image_url:
            return [config.reference_image_url]
        urls = []
        for node_id in MENTION_PATTERN.findall(config.prompt or ""):
            url = image_url_of(self.canvas.find_node(node_id))
            if url and url not in urls:
                urls.append(url)
        return urls

    def plugin_source_url(self, config: NodeConfig) -> str | None:
        if config.source_image_url:
            return config.source_image_url
        for node_id in self.source_ids(config):
            url = image_url_of(self.canvas.find_node(node_id))
            if url:
                return url
        return None

    def build(self, kind: NodeKind, config: NodeConfig, position: Position) -> NodeRecord:
        category = self.category_for(kind, config)
        frame = {
            "frameWidth": self.layout_config.frame_width,
            "frameHeight": self.layout_config.frame_height,
        }

        match kind:
            case NodeKind.IMAGE_GENERATOR:
                fields: dict[str, Any] = {
                    "prompt": config.prompt or "",
                    "model": config.model or self.settings.default_image_model,
                    "aspectRatio": config.aspect_ratio or "1:1",
                    "imageCount": 1,
                    "initialCount": 1,
                    "resolution": config.resolution or "1024",
                    **frame,
                    "isGenerating": False,
                }
                references = self.reference_urls(config)
                if references:
                    fields["referenceImageUrls"] = references
            case NodeKind.VIDEO_GENERATOR:
                fields = {
                    "prompt": config.prompt or "",
                    "model": config.model or self.settings.default_video_model,
                    "aspectRatio": config.aspect_ratio or "16:9",
                    "duration": config.duration or 4,
                    "resolution": config.resolution or "720p",
                    **frame,
                }
            case NodeKind.MUSIC_GENERATOR:
                fields = {
                    "prompt": config.prompt or "",
                    "model": config.model,
                    "frameWidth": 400,
                    "frameHeight": 150,
                }
                if config.duration:
                    fields["duration"] = config.duration
            case NodeKind.TEXT:
                fields = {
                    "text": config.content or config.prompt or "",
                    "width": 300,
                    "height": 100,
                    "style": config.style or "standard",
                }
            case NodeKind.PLUGIN:
                fields = dict(PLUGIN_DEFAULTS.get(category, {}))
                if config.model:
                    fields["model"] = PLUGIN_MODEL_ALIASES.get(config.model, config.model)
                fields["sourceImageUrl"] = self.plugin_source_url(config)
                fields["isExpanded"] = True
            case _:
                assert_never(kind)

        if config.style and kind is not NodeKind.TEXT:
            fields["style"] = config.style
        fields.update(config.extra_fields())
        return NodeRecord(id=self.id_factory(category), category=category, position=position, fields=fields)

    # ------------------------------------------------------------------
    # Canvas mutation
    # ------------------------------------------------------------------

    async def materialize(
        self,
        kind: NodeKind,
        config: NodeConfig,
        position: Position,
        step_id: str | None = None,
    ) -> NodeRecord:
        record = self.build(kind, config, position)
        self.canvas.add_node(record.category, record)
        self.report.created.append(record.id)

        try:
            await self.canvas.persist_node_create(record.category, record)
        except Exception as e:
            failure = PersistenceFailure("node-create", record.id, e)
            logger.error(f"[Engine] {failure}")
            self.report.add_issue(failure)

        try:
            await self._auto_connect(kind, record, config, step_id)
        except CanvasFlowError as e:
            logger.warning(f"[Connect] {e}")
            self.report.add_issue(e)
        return record

    async def _auto_connect(
        self,
        kind: NodeKind,
        record: NodeRecord,
        config: NodeConfig,
        step_id: str | None,
    ) -> None:
        match kind:
            case NodeKind.VIDEO_GENERATOR:
                if config.connect_to_frames is not None:
                    await self.connections.connect_frames(record.id, config.connect_to_frames, step_id)
                else:
                    await self.connections.connect_legacy(record.id, self.source_ids(config))
            case NodeKind.IMAGE_GENERATOR:
                if config.target_ids:
                    await self.connections.connect_sources(record.id, config.target_ids)
            case NodeKind.PLUGIN:
                await self.connections.connect_sources(record.id, self.source_ids(config)[:1])
            case NodeKind.MUSIC_GENERATOR | NodeKind.TEXT:
                pass
            case _:
                assert_never(kind)

    def apply_result(self, category: str, node_id: str, fields: dict[str, Any]) -> None:
        """Write generation results back onto an existing node."""
        logger.info(f"[Engine] applying result to {category}/{node_id}: {sorted(fields)}")
        self.canvas.update_node(category, node_id, fields)
