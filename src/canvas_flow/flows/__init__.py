"""Duration-driven script and video flow generation."""

from canvas_flow.flows.catalog import MODEL_MAX_DURATIONS, clamp_duration, max_duration_for
from canvas_flow.flows.request_parser import parse_video_flow_request
from canvas_flow.flows.script import FramePrompt, Scene, ScriptFlowGenerator, VideoFlowConfig
from canvas_flow.flows.segmenter import Segment, segment_count, segment_windows
from canvas_flow.flows.strategies import (
    FirstLastFrameFlow,
    FlowResult,
    FlowTemplate,
    SequentialFlow,
    execute_video_flow,
)

__all__ = [
    "MODEL_MAX_DURATIONS",
    "FirstLastFrameFlow",
    "FlowResult",
    "FlowTemplate",
    "FramePrompt",
    "Scene",
    "ScriptFlowGenerator",
    "Segment",
    "SequentialFlow",
    "VideoFlowConfig",
    "clamp_duration",
    "execute_video_flow",
    "max_duration_for",
    "parse_video_flow_request",
    "segment_count",
    "segment_windows",
]
