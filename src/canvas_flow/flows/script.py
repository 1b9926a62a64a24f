"""
Script and per-frame prompt generation for duration-driven video flows.

1. Acquire a script: the user's own, else one from the prompt-completion
   service, else a deterministic local script.
2. Divide it into one scene per segment.
3. Turn each scene into a visual prompt, condensing long scenes.

Prompt-completion failures never escape; they are logged, collected in
``issues`` and replaced by the local fallback.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field

from pydantic import Field

from canvas_flow.canvas.protocols import PromptCompletionProtocol, completion_text
from canvas_flow.config import Settings, get_settings
from canvas_flow.engine.errors import ExternalServiceFailure
from canvas_flow.flows.segmenter import Segment, segments_for_model
from canvas_flow.plan.models import PlanModel

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\n+")
DESCRIPTION_LENGTH = 150

SCRIPT_PROMPT = """Create a detailed video script for a {total} second video about "{topic}".
The video will be divided into {count} scenes, each approximately {scene_duration} seconds long.
{style_line}
Requirements:
1. Write a compelling, detailed script that tells a complete story
2. The script should be suitable for visual storytelling
3. Include vivid descriptions of scenes, actions, and visual elements
4. Make it engaging and cinematic
5. The script should flow naturally from scene to scene

Format the script as a continuous narrative that can be divided into {count} scenes."""

CONDENSE_PROMPT = """Create a concise visual description (max 100 words) for a video scene based on this script excerpt:

{scene}

The description should be:
- Visual and cinematic
- Suitable for AI video generation
- Focus on what can be seen on screen
- Include key visual elements, actions, and atmosphere

Return only the visual description, no explanations."""


class VideoFlowConfig(PlanModel):
    total_duration: float = Field(gt=0)
    topic: str = "Untitled Video"
    style: str | None = None
    aspect_ratio: str = "16:9"
    resolution: str = "720p"
    model: str = "Veo 3.1 Fast"
    user_script: str | None = None


@dataclass
class Scene:
    scene_number: int
    time_start: float
    time_end: float
    duration: float
    script: str
    description: str


@dataclass
class FramePrompt:
    frame_index: int
    time_start: float
    time_end: float
    prompt: str
    scene_number: int
    scene_script: str


@dataclass
class ScriptFlow:
    script: str
    segments: list[Segment]
    scenes: list[Scene]
    frames: list[FramePrompt]
    issues: list[ExternalServiceFailure] = field(default_factory=list)


def describe(text: str) -> str:
    if len(text) > DESCRIPTION_LENGTH:
        return text[:DESCRIPTION_LENGTH] + "..."
    return text


def fallback_script(config: VideoFlowConfig, count: int) -> str:
    """Deterministic opening/middle/closing script, one paragraph per segment."""
    scene_duration = math.ceil(config.total_duration / count)
    total = f"{config.total_duration:g}"
    scenes = []
    for i in range(count):
        if i == 0:
            scenes.append(
                f"Scene {i + 1} (0-{scene_duration}s): Opening scene of {config.topic}. "
                "Introduction and establishing shot."
            )
        elif i == count - 1:
            scenes.append(
                f"Scene {count} ({i * scene_duration}-{total}s): Final scene of {config.topic}. "
                "Conclusion and closing."
            )
        else:
            scenes.append(
                f"Scene {i + 1} ({i * scene_duration}-{(i + 1) * scene_duration}s): "
                f"Middle scene of {config.topic}. Development and progression."
            )
    return "\n\n".join(scenes)


def divide_script(script: str, segments: list[Segment]) -> list[Scene]:
    """One scene per segment: by paragraph groups when there are enough, else by characters."""
    count = len(segments)
    paragraphs = [p.strip() for p in PARAGRAPH_BREAK.split(script) if p.strip()]

    chunks: list[str] = []
    if len(paragraphs) >= count:
        # Spread paragraphs evenly so no scene is left empty.
        for i in range(count):
            start = i * len(paragraphs) // count
            end = (i + 1) * len(paragraphs) // count
            chunks.append("\n\n".join(paragraphs[start:end]))
    else:
        chars = math.ceil(len(script) / count)
        for i in range(count):
            chunks.append(script[i * chars : (i + 1) * chars].strip())

    return [
        Scene(
            scene_number=segment.index + 1,
            time_start=segment.time_start,
            time_end=segment.time_end,
            duration=segment.duration,
            script=chunk,
            description=describe(chunk),
        )
        for segment, chunk in zip(segments, chunks)
    ]


class ScriptFlowGenerator:
    def __init__(
        self,
        prompt_service: PromptCompletionProtocol | None = None,
        settings: Settings | None = None,
    ):
        self.prompt_service = prompt_service
        self.settings = settings or get_settings()
        self.issues: list[ExternalServiceFailure] = []

    def _service_failed(self, service: str, reason: str) -> None:
        failure = ExternalServiceFailure(service, reason)
        logger.warning(f"[ScriptFlow] {failure}; using local fallback")
        self.issues.append(failure)

    async def acquire_script(self, config: VideoFlowConfig, count: int) -> str:
        if config.user_script and config.user_script.strip():
            logger.info("[ScriptFlow] using user-supplied script")
            return config.user_script.strip()

        if self.prompt_service is None:
            self._service_failed("script", "no prompt-completion service configured")
            return fallback_script(config, count)

        prompt = SCRIPT_PROMPT.format(
            total=f"{config.total_duration:g}",
            topic=config.topic,
            count=count,
            scene_duration=math.ceil(config.total_duration / count),
            style_line=f"Style: {config.style}.\n" if config.style else "",
        )
        try:
            result = await self.prompt_service.query_prompt(prompt, self.settings.script_max_tokens)
        except Exception as e:
            self._service_failed("script", f"request failed: {e}")
            return fallback_script(config, count)

        script = completion_text(result)
        if len(script) < self.settings.min_script_length:
            self._service_failed("script", f"response too short ({len(script)} chars)")
            return fallback_script(config, count)
        return script

    async def visual_prompt(self, scene: Scene) -> str:
        """Scene text as a prompt, condensed when longer than the threshold."""
        if len(scene.script) <= self.settings.condense_threshold:
            return scene.script
        if self.prompt_service is None:
            return scene.description

        try:
            result = await self.prompt_service.query_prompt(
                CONDENSE_PROMPT.format(scene=scene.script),
                self.settings.condense_max_tokens,
            )
        except Exception as e:
            self._service_failed("condense", f"scene {scene.scene_number}: {e}")
            return scene.description

        text = completion_text(result)
        if not text:
            self._service_failed("condense", f"scene {scene.scene_number}: empty response")
            return scene.description
        return text

    async def generate(self, config: VideoFlowConfig) -> ScriptFlow:
        self.issues = []
        segments = segments_for_model(config.total_duration, config.model)
        logger.info(
            f"[ScriptFlow] {config.total_duration:g}s of {config.model} -> {len(segments)} segment(s)"
        )

        script = await self.acquire_script(config, len(segments))
        scenes = divide_script(script, segments)

        frames = []
        for segment, scene in zip(segments, scenes):
            prompt = await self.visual_prompt(scene) or f"Scene {scene.scene_number} of {config.topic}"
            if config.style:
                prompt = f"{prompt}, {config.style} style"
            frames.append(
                FramePrompt(
                    frame_index=segment.index,
                    time_start=segment.time_start,
                    time_end=segment.time_end,
                    prompt=prompt.strip(),
                    scene_number=scene.scene_number,
                    scene_script=scene.script,
                )
            )
        return ScriptFlow(script=script, segments=segments, scenes=scenes, frames=frames, issues=list(self.issues))
