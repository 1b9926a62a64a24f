"""Video model capabilities used for segmenting and planning."""

from dataclasses import dataclass

DEFAULT_MAX_DURATION = 8

MODEL_MAX_DURATIONS: dict[str, int] = {
    "Veo 3.1 Fast": 8,
    "Veo 3.1": 8,
    "Veo 3.1 Pro": 8,
    "Veo 3 Fast Pro": 8,
    "Veo 3 Pro": 8,
    "Seedance 1.0 Pro": 12,
    "Seedance 1.0 Lite": 12,
    "Sora 2 Pro": 8,
    "LTX V2 Pro": 8,
    "LTX V2 Fast": 8,
    "default": DEFAULT_MAX_DURATION,
}


@dataclass(frozen=True)
class VideoModel:
    name: str
    max_duration: int
    supported_durations: tuple[int, ...] = ()
    first_last_frame: bool = False


VIDEO_MODELS: dict[str, VideoModel] = {
    model.name.lower(): model
    for model in (
        VideoModel("Veo 3.1 Fast", 8, (4, 6, 8), first_last_frame=True),
        VideoModel("Veo 3.1", 8, (4, 6, 8), first_last_frame=True),
        VideoModel("Veo 3.1 Pro", 8, (4, 6, 8), first_last_frame=True),
        VideoModel("Veo 3 Fast Pro", 8, (8,)),
        VideoModel("Veo 3 Pro", 8, (8,)),
        VideoModel("Seedance 1.0 Pro", 12, (5, 10, 12), first_last_frame=True),
        VideoModel("Seedance 1.0 Lite", 12, (5, 10, 12), first_last_frame=True),
        VideoModel("Sora 2 Pro", 8, (4, 8)),
        VideoModel("LTX V2 Pro", 8, (6, 8)),
        VideoModel("LTX V2 Fast", 8, (6, 8)),
    )
}


def find_video_model(query: str | None) -> VideoModel | None:
    """Look a model up by exact name, then by partial name (case-insensitive)."""
    q = (query or "").strip().lower()
    if not q:
        return None
    if q in VIDEO_MODELS:
        return VIDEO_MODELS[q]
    for key, model in VIDEO_MODELS.items():
        if q in key or key in q:
            return model
    return None


def max_duration_for(model: str | None) -> int:
    if model and model in MODEL_MAX_DURATIONS:
        return MODEL_MAX_DURATIONS[model]
    return MODEL_MAX_DURATIONS["default"]


def supports_first_last_frame(model: str | None) -> bool:
    record = find_video_model(model)
    return bool(record and record.first_last_frame)


def clamp_duration(model: str | None, seconds: int | float) -> int:
    """Nearest supported clip duration, or ``seconds`` capped at the model maximum."""
    record = find_video_model(model)
    if record and record.supported_durations:
        return min(record.supported_durations, key=lambda d: abs(d - seconds))
    return int(min(seconds, max_duration_for(model)))
