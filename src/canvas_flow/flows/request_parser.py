"""
Recognize long-form video requests in chat messages.

Only requests for more than ``TEMPLATE_MIN_DURATION`` seconds qualify; shorter
ones are handled as single clips elsewhere.
"""

import logging
import re

from canvas_flow.flows.script import VideoFlowConfig

logger = logging.getLogger(__name__)

TEMPLATE_MIN_DURATION = 12

_TYPOS = (
    ("minite", "minute"),
    ("minit", "minute"),
    ("vidoe", "video"),
    ("vido", "video"),
    ("vedio", "video"),
)

VIDEO_KEYWORDS = (
    "video",
    "generate video",
    "create video",
    "make video",
    "produce video",
    "want to generate",
    "want to create",
    "want to make",
    "i want",
    "generate a video",
    "create a video",
    "make a video",
    "advertisement",
    "ad",
    "commercial",
)

_VIDEO_WORD = r"(?:video|vidoe|vido|vedio|vid|advertisement|ad|commercial)"
_MINUTE_WORD = r"(?:minute|minit|minite|min|m)"
_SECOND_WORD = r"(?:second|sec|s)"

DURATION_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(rf"(\d+)\s*{_MINUTE_WORD}\s*{_VIDEO_WORD}", re.I), 60),
    (re.compile(rf"(\d+)\s*{_SECOND_WORD}\s*{_VIDEO_WORD}", re.I), 1),
    (re.compile(rf"(\d+)\s*{_MINUTE_WORD}\b", re.I), 60),
    (re.compile(rf"(\d+)\s*{_SECOND_WORD}\b", re.I), 1),
    (re.compile(r"(\d+)\s*s\b", re.I), 1),
)

_TOPIC_END = r"(?:\s+\d+|\s+and|\s+tell|\s*$)"

TOPIC_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"(?:video|vidoe|vido|vedio)\s+(?:advertisement|ad|commercial)\s+(?:of|about)\s+(.+?){_TOPIC_END}", re.I),
    re.compile(rf"(?:video|vidoe|vido|vedio|generate|create|make|produce)\s+(?:of|about)\s+(.+?){_TOPIC_END}", re.I),
    re.compile(rf"(?:of|about)\s+(.+?){_TOPIC_END}", re.I),
    re.compile(
        rf"\d+\s*(?:minute|minit|minite|min|m|second|sec|s)\s*{_VIDEO_WORD}\s+(?:of|about)\s+(.+?)(?:\s+and|\s+tell|\s*$)",
        re.I,
    ),
    re.compile(rf"(?:generate|create|make|produce)\s+(.+?)\s+(?:video|vidoe|vido|vedio|advertisement|ad|commercial)", re.I),
)

_DURATION_MENTION = re.compile(r"\d+\s*(?:minute|minit|minite|min|second|sec|m|s)", re.I)
_FILLER_WORDS = re.compile(
    r"\b(?:video|vidoe|vido|vedio|vid|advertisement|ad|commercial|and|telling|is|all|things|benefits|benfirst)\b",
    re.I,
)
_OF_TOPIC = re.compile(rf"(?:of|about)\s+([^0-9]+?){_TOPIC_END}", re.I)
_PRODUCT_TOPIC = re.compile(r"(?:of|about|for)\s+([a-z\s]{3,30}?)(?:\s+\d+|\s+and|\s+tell|\s+benefit|\s*$)", re.I)

STYLE_KEYWORDS = ("cinematic", "epic", "dramatic", "realistic", "animated", "cartoon")

SCRIPT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"script[:\s]+(.+?)(?:\s+\d+|\s*$)", re.I),
    re.compile(r"here is the script[:\s]+(.+?)(?:\s+\d+|\s*$)", re.I),
    re.compile(r"use this script[:\s]+(.+?)(?:\s+\d+|\s*$)", re.I),
)


def normalize_message(message: str) -> str:
    text = message.lower()
    for typo, fixed in _TYPOS:
        text = text.replace(typo, fixed)
    return text


def _search(pattern: re.Pattern[str], message: str, normalized: str) -> re.Match[str] | None:
    return pattern.search(message) or pattern.search(normalized)


def extract_duration(message: str, normalized: str | None = None) -> int:
    normalized = normalized if normalized is not None else normalize_message(message)
    for pattern, multiplier in DURATION_PATTERNS:
        match = _search(pattern, message, normalized)
        if match:
            return int(match.group(1)) * multiplier
    return 0


def _clean_topic(topic: str) -> str:
    topic = _DURATION_MENTION.sub("", topic).strip()
    topic = _FILLER_WORDS.sub("", topic).strip()
    return re.sub(r"\s{2,}", " ", topic)


def extract_topic(message: str, normalized: str | None = None) -> str:
    normalized = normalized if normalized is not None else normalize_message(message)
    topic = message
    for pattern in TOPIC_PATTERNS:
        match = _search(pattern, message, normalized)
        if match and match.group(1):
            topic = _clean_topic(match.group(1).strip())
            if len(topic) > 3:
                break

    if topic == message or len(topic) < 3:
        match = _search(_OF_TOPIC, message, normalized)
        if match and match.group(1):
            topic = _clean_topic(match.group(1).strip())

    if topic == message or len(topic) < 3:
        match = _PRODUCT_TOPIC.search(normalized)
        if match and match.group(1):
            topic = match.group(1).strip()
    return topic


def extract_style(lower: str) -> str | None:
    for keyword in STYLE_KEYWORDS:
        if keyword in lower:
            return keyword
    return None


def extract_aspect_ratio(lower: str) -> str | None:
    if "reel" in lower or "vertical" in lower or "9:16" in lower:
        return "9:16"
    if "widescreen" in lower or "movie" in lower or "16:9" in lower:
        return "16:9"
    if "square" in lower or "1:1" in lower:
        return "1:1"
    return None


def extract_resolution(message: str) -> str | None:
    match = re.search(r"(\d+)p", message, re.I)
    return f"{match.group(1)}p" if match else None


def extract_model(lower: str) -> str | None:
    if "veo 3.1 fast" in lower or "veo3.1 fast" in lower:
        return "Veo 3.1 Fast"
    if "veo 3.1" in lower or "veo3.1" in lower:
        return "Veo 3.1"
    if "seedance 1.0 pro" in lower or "seedance1.0pro" in lower:
        return "Seedance 1.0 Pro"
    if "seedance 1.0 lite" in lower or "seedance1.0lite" in lower:
        return "Seedance 1.0 Lite"
    return None


def extract_script(message: str, topic: str) -> str | None:
    for pattern in SCRIPT_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1):
            return match.group(1).strip()

    # A long, multi-sentence message probably carries its own script after the topic.
    if len(message) > 200:
        sentences = len(re.findall(r"[.!?]+", message))
        if sentences > 3 or "\n\n" in message:
            topic_index = message.lower().find(topic.lower())
            if topic_index >= 0:
                after_topic = message[topic_index + len(topic) :].strip()
                if len(after_topic) > 100:
                    return after_topic
    return None


def parse_video_flow_request(message: str) -> VideoFlowConfig | None:
    """Build a flow config from a chat message, or None when it does not qualify."""
    normalized = normalize_message(message)
    if not any(keyword in normalized for keyword in VIDEO_KEYWORDS):
        logger.debug("[VideoFlow] not a video request")
        return None

    total_duration = extract_duration(message, normalized)
    if total_duration <= TEMPLATE_MIN_DURATION:
        logger.debug(f"[VideoFlow] {total_duration}s does not qualify for a template flow")
        return None

    lower = message.lower()
    topic = extract_topic(message, normalized)
    config = VideoFlowConfig(
        total_duration=total_duration,
        topic=topic or "Untitled Video",
        style=extract_style(lower),
        aspect_ratio=extract_aspect_ratio(lower) or "16:9",
        resolution=extract_resolution(message) or "720p",
        model=extract_model(lower) or "Veo 3.1 Fast",
        user_script=extract_script(message, topic),
    )
    logger.info(f"[VideoFlow] parsed request: {config.total_duration:g}s about {config.topic!r}")
    return config
