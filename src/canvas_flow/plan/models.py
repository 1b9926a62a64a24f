"""
Instruction plan models.

A plan is an ordered list of steps discriminated on ``action``. JSON input
uses camelCase keys (``nodeType``, ``configTemplate``, ``fromStepId`` ...);
Python callers may use either the aliases or the snake_case field names.
"""

import json
import uuid
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _step_id() -> str:
    return f"step-{uuid.uuid4().hex[:8]}"


class PlanModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeKind(str, Enum):
    IMAGE_GENERATOR = "image-generator"
    VIDEO_GENERATOR = "video-generator"
    MUSIC_GENERATOR = "music-generator"
    TEXT = "text"
    PLUGIN = "plugin"


class ConnectionType(str, Enum):
    FIRST_LAST_FRAME = "FIRST_LAST_FRAME"
    FIRST_FRAME_ONLY = "FIRST_FRAME_ONLY"
    IMAGE_TO_VIDEO = "IMAGE_TO_VIDEO"


class FrameSource(str, Enum):
    STEP_REF = "STEP_REF"
    USER_UPLOAD = "USER_UPLOAD"


def _coerce_frame_source(value: Any) -> Any:
    # Planners emit "GENERATED" for frames produced by an earlier step.
    if isinstance(value, str) and value.upper() == "GENERATED":
        return FrameSource.STEP_REF
    return value


class ConnectToFramesConfig(PlanModel):
    """How a video node is wired to its frame images."""

    connection_type: ConnectionType

    first_frame_source: FrameSource = FrameSource.STEP_REF
    first_frame_step_id: str | None = None
    first_frame_index: int | None = None
    first_frame_id: str | None = None

    last_frame_source: FrameSource = FrameSource.STEP_REF
    last_frame_step_id: str | None = None
    last_frame_index: int | None = None
    last_frame_id: str | None = None

    frame_source: FrameSource = FrameSource.STEP_REF
    frame_step_id: str | None = None
    frame_index: int | None = None
    frame_id: str | None = None

    @field_validator("first_frame_source", "last_frame_source", "frame_source", mode="before")
    @classmethod
    def _generated_is_step_ref(cls, value: Any) -> Any:
        return _coerce_frame_source(value)


class NodeConfig(PlanModel):
    """Per-node configuration; unknown keys are kept and passed to the node."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    model: str | None = None
    prompt: str | None = None
    duration: int | None = None
    resolution: str | None = None
    aspect_ratio: str | None = None
    style: str | None = None
    content: str | None = None
    plugin_type: str | None = None
    target_ids: list[str] | None = None
    source_image_url: str | None = None
    reference_image_url: str | None = None
    connect_to_frames: ConnectToFramesConfig | None = None

    def merged(self, override: "NodeConfig | None") -> "NodeConfig":
        """This config with every value set in ``override`` taking precedence."""
        if override is None:
            return self.model_copy(deep=True)
        data = self.model_dump(by_alias=True, exclude_none=True)
        data.update(override.model_dump(by_alias=True, exclude_none=True))
        return NodeConfig.model_validate(data)

    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class CreateNodeStep(PlanModel):
    id: str = Field(default_factory=_step_id)
    action: Literal["CREATE_NODE"] = "CREATE_NODE"
    node_type: NodeKind
    count: int = Field(default=1, ge=1)
    config_template: NodeConfig = Field(default_factory=NodeConfig)
    batch_configs: list[NodeConfig] = Field(default_factory=list)
    explanation: str | None = None


class ConnectSequentiallyStep(PlanModel):
    id: str = Field(default_factory=_step_id)
    action: Literal["CONNECT_SEQUENTIALLY"] = "CONNECT_SEQUENTIALLY"
    from_step_id: str
    to_step_id: str | None = None
    explanation: str | None = None


class GroupNodesStep(PlanModel):
    """Recognized but not applied: grouping has no effect on the canvas."""

    id: str = Field(default_factory=_step_id)
    action: Literal["GROUP_NODES"] = "GROUP_NODES"
    step_ids: list[str] = Field(default_factory=list)
    group_type: str | None = None
    label: str | None = None
    explanation: str | None = None


class DeleteNodeStep(PlanModel):
    id: str = Field(default_factory=_step_id)
    action: Literal["DELETE_NODE"] = "DELETE_NODE"
    target_type: Literal["image", "video", "music", "text", "plugin", "all"]
    target_ids: list[str] = Field(default_factory=list)
    plugin_type: str | None = None
    explanation: str | None = None


Step = Annotated[
    Union[CreateNodeStep, ConnectSequentiallyStep, GroupNodesStep, DeleteNodeStep],
    Field(discriminator="action"),
]


class InstructionPlan(PlanModel):
    id: str = Field(default_factory=lambda: f"plan-{uuid.uuid4().hex[:8]}")
    summary: str = ""
    steps: list[Step] = Field(default_factory=list)
    requires_confirmation: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json(cls, data: str | bytes | dict[str, Any]) -> "InstructionPlan":
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        return cls.model_validate(data)

    def create_steps(self) -> list[CreateNodeStep]:
        return [step for step in self.steps if isinstance(step, CreateNodeStep)]
