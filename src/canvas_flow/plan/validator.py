"""Static checks over an instruction plan.

Findings are advisory: the executor logs them and still runs the plan.
"""

from canvas_flow.plan.models import (
    ConnectionType,
    ConnectSequentiallyStep,
    CreateNodeStep,
    FrameSource,
    InstructionPlan,
    NodeKind,
)


def _frame_configs(step: CreateNodeStep):
    yield step.config_template.connect_to_frames
    for override in step.batch_configs:
        yield override.connect_to_frames


def validate_plan(plan: InstructionPlan) -> list[str]:
    errors: list[str] = []
    if not plan.steps:
        errors.append("Plan has no steps.")

    produced: set[str] = set()
    for step in plan.steps:
        if isinstance(step, ConnectSequentiallyStep):
            if step.from_step_id not in produced:
                errors.append(f"Connect step {step.id}: unknown fromStepId {step.from_step_id}.")
            if step.to_step_id and step.to_step_id not in produced:
                errors.append(f"Connect step {step.id}: unknown toStepId {step.to_step_id}.")
            continue
        if not isinstance(step, CreateNodeStep):
            continue

        if step.node_type is NodeKind.VIDEO_GENERATOR:
            for frames in _frame_configs(step):
                if frames is None:
                    continue
                if frames.connection_type is ConnectionType.FIRST_LAST_FRAME:
                    if not frames.first_frame_step_id or not frames.last_frame_step_id:
                        errors.append(f"Video step {step.id}: FIRST_LAST_FRAME missing frame step ids.")
                    for ref in (frames.first_frame_step_id, frames.last_frame_step_id):
                        if ref and ref not in produced and ref != step.id:
                            errors.append(f"Video step {step.id}: frame step {ref} is not created earlier.")
                if frames.connection_type is ConnectionType.IMAGE_TO_VIDEO:
                    if frames.frame_source is FrameSource.USER_UPLOAD and not frames.frame_id:
                        errors.append(f"Video step {step.id}: IMAGE_TO_VIDEO missing user frameId.")
        produced.add(step.id)

    return list(dict.fromkeys(errors))
