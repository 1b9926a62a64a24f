"""
Compile a video request into an instruction plan.

Multi-clip runs on models with first/last-frame support (and every run that
starts from reference images) use N+1 boundary frames: clip ``i`` starts on
frame ``i`` and ends on frame ``i + 1``. Other runs get one batched video step
chained in order.
"""

import logging
import time
import uuid
from dataclasses import dataclass, replace

from canvas_flow.config import Settings, get_settings
from canvas_flow.flows.catalog import clamp_duration, find_video_model, max_duration_for, supports_first_last_frame
from canvas_flow.flows.script import Scene, VideoFlowConfig
from canvas_flow.plan.models import (
    ConnectionType,
    ConnectSequentiallyStep,
    ConnectToFramesConfig,
    CreateNodeStep,
    FrameSource,
    GroupNodesStep,
    InstructionPlan,
    NodeConfig,
    NodeKind,
)

logger = logging.getLogger(__name__)

STRENGTH_PREFIXES = {
    "high": "Match the reference image strongly (same product identity, materials, branding).",
    "medium": "Use the reference image as guidance (keep product identity consistent).",
    "low": "Use the reference image loosely (keep general identity but allow variation).",
}


@dataclass(frozen=True)
class Clip:
    number: int
    prompt: str
    duration: float


def expand_clips(scenes: list[Scene], prompt: str, total: float, max_clip: float) -> list[Clip]:
    """Split scenes longer than a clip and pad with the last clip up to ``total``."""
    clips: list[Clip] = []
    for scene in scenes:
        remaining = scene.duration
        while remaining > 0:
            duration = min(remaining, max_clip)
            clips.append(Clip(scene.scene_number, scene.script or scene.description, duration))
            remaining -= duration

    filled = sum(clip.duration for clip in clips)
    last = clips[-1] if clips else Clip(0, prompt, min(max_clip, total))
    while filled < total:
        needed = min(max_clip, total - filled)
        clips.append(replace(last, duration=needed))
        filled += needed

    return [replace(clip, number=i + 1) for i, clip in enumerate(clips)]


def _boundary_prompts(clips: list[Clip], model: str, max_clip: float, prefix: str = "") -> list[str]:
    lead = f"{prefix} " if prefix else ""
    prompts = [f"{lead}First frame (0s): {clips[0].prompt or 'Opening frame'}"]
    for i in range(1, len(clips) + 1):
        prev = clips[i - 1]
        at = i * clamp_duration(model, prev.duration or max_clip)
        prompts.append(f"{lead}Last frame ({at}s) for clip {i}: {prev.prompt or 'Closing frame'}")
    return prompts


def build_video_plan(
    config: VideoFlowConfig,
    scenes: list[Scene] | None = None,
    script: str | None = None,
    reference_image_ids: list[str] | None = None,
    reference_strength: str = "medium",
    settings: Settings | None = None,
) -> InstructionPlan:
    settings = settings or get_settings()
    record = find_video_model(config.model)
    model = record.name if record else settings.default_video_model
    max_clip = max_duration_for(model)
    clips = expand_clips(scenes or [], config.topic, config.total_duration, max_clip)

    steps: list = []
    if script:
        steps.append(
            CreateNodeStep(
                id=f"script-{uuid.uuid4()}",
                node_type=NodeKind.TEXT,
                count=1,
                config_template=NodeConfig(model="standard", content=script, style="rich"),
            )
        )

    use_boundaries = bool(reference_image_ids) or (len(clips) > 1 and supports_first_last_frame(model))
    if use_boundaries:
        prefix = STRENGTH_PREFIXES.get(reference_strength, STRENGTH_PREFIXES["medium"]) if reference_image_ids else ""
        image_step_id = f"frames-{uuid.uuid4()}"
        steps.append(
            CreateNodeStep(
                id=image_step_id,
                node_type=NodeKind.IMAGE_GENERATOR,
                count=len(clips) + 1,
                config_template=NodeConfig(
                    model=settings.default_image_model,
                    aspect_ratio=config.aspect_ratio,
                    prompt="Scene boundary frame" if reference_image_ids else "Boundary frame",
                    target_ids=list(reference_image_ids) if reference_image_ids else None,
                ),
                batch_configs=[NodeConfig(prompt=p) for p in _boundary_prompts(clips, model, max_clip, prefix)],
            )
        )
        for idx, clip in enumerate(clips):
            steps.append(
                CreateNodeStep(
                    id=f"video-{idx + 1}-{uuid.uuid4()}",
                    node_type=NodeKind.VIDEO_GENERATOR,
                    count=1,
                    config_template=NodeConfig(
                        model=model,
                        aspect_ratio=config.aspect_ratio,
                        resolution=config.resolution,
                        duration=clamp_duration(model, clip.duration),
                        prompt=clip.prompt,
                        connect_to_frames=ConnectToFramesConfig(
                            connection_type=ConnectionType.FIRST_LAST_FRAME,
                            first_frame_source=FrameSource.STEP_REF,
                            last_frame_source=FrameSource.STEP_REF,
                            first_frame_step_id=image_step_id,
                            last_frame_step_id=image_step_id,
                            first_frame_index=idx,
                            last_frame_index=idx + 1,
                        ),
                    ),
                )
            )
    else:
        video_step_id = f"videos-{uuid.uuid4()}"
        steps.append(
            CreateNodeStep(
                id=video_step_id,
                node_type=NodeKind.VIDEO_GENERATOR,
                count=len(clips),
                config_template=NodeConfig(
                    model=model,
                    aspect_ratio=config.aspect_ratio,
                    resolution=config.resolution,
                    duration=clamp_duration(model, clips[0].duration),
                    prompt=clips[0].prompt,
                ),
                batch_configs=[
                    NodeConfig(prompt=clip.prompt, duration=clamp_duration(model, clip.duration)) for clip in clips
                ],
            )
        )
        if len(clips) > 1:
            steps.append(ConnectSequentiallyStep(from_step_id=video_step_id))
            steps.append(
                GroupNodesStep(step_ids=[video_step_id], group_type="video-sequence", label=config.topic)
            )

    summary = [
        f"Duration: {config.total_duration:g}s",
        f"Aspect Ratio: {config.aspect_ratio}",
        f"Resolution: {config.resolution}",
        f"Model: {model}",
        f"Clips: {len(clips)}",
    ]
    if use_boundaries:
        summary.append(f"Boundary Images: {len(clips) + 1} (first/last frame)")

    logger.info(f"[VideoFlow] planned {len(clips)} clip(s) in {len(steps)} step(s) for {config.topic!r}")
    return InstructionPlan(
        id=f"plan-{uuid.uuid4()}",
        summary="\n".join(summary),
        steps=steps,
        requires_confirmation=True,
        metadata={
            "sourceGoal": {
                "goalType": "STORY_VIDEO",
                "topic": config.topic,
                "durationSeconds": config.total_duration,
                "aspectRatio": config.aspect_ratio,
                "resolution": config.resolution,
                "needs": ["video"],
            },
            "compiledAt": int(time.time() * 1000),
        },
    )
