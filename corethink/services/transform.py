"""Outgoing payload normalization.

Messages use the chat-completions shape: ``{"role": ..., "content": ...}``
where content is a string, None, or a list of typed parts. Attachment parts
are ``{"type": "image", "image": <data URI or URL>}``,
``{"type": "image_url", "image_url": {"url": ...}}`` and
``{"type": "file", "data": ..., "media_type": ..., "filename": ...}``.

Nothing here performs I/O or mutates its input.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from corethink.models.provider import Modality, ModelDescriptor


Message = Mapping[str, Any]

EMPTY_IMAGE_TEXT = "ERROR: Image file is empty or corrupted. Please provide a valid image."

_DATA_URI = re.compile(r"^data:([^;]+);base64,(.*)$", re.DOTALL)
_ATTACHMENT_TYPES = frozenset({"image", "image_url", "file"})


def mime_to_modality(mime: str) -> Modality | None:
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("audio/"):
        return "audio"
    if mime.startswith("video/"):
        return "video"
    if mime == "application/pdf":
        return "pdf"
    return None


def _image_source(part: Mapping[str, Any]) -> str | None:
    if part.get("type") == "image_url":
        image_url = part.get("image_url")
        if isinstance(image_url, Mapping):
            url = image_url.get("url")
            return url if isinstance(url, str) else None
        return image_url if isinstance(image_url, str) else None
    image = part.get("image")
    return image if isinstance(image, str) else None


def _part_mime(part: Mapping[str, Any]) -> str:
    if part.get("type") == "file":
        return str(part.get("media_type") or "")
    source = _image_source(part)
    if source and source.startswith("data:"):
        return source.split(";", 1)[0].removeprefix("data:")
    return str(part.get("media_type") or "")


def unsupported_text(name: str, modality: Modality) -> str:
    return (
        f"ERROR: Cannot read {name} (this model does not support {modality} input). "
        "Inform the user."
    )


def _sanitize_part(part: Any, model: ModelDescriptor) -> Any:
    if not isinstance(part, Mapping) or part.get("type") not in _ATTACHMENT_TYPES:
        return part

    if part.get("type") != "file":
        source = _image_source(part)
        if source and source.startswith("data:"):
            match = _DATA_URI.match(source)
            if match and not match.group(2):
                return {"type": "text", "text": EMPTY_IMAGE_TEXT}

    modality = mime_to_modality(_part_mime(part))
    if modality is None or model.capabilities.input.supports(modality):
        return part

    filename = part.get("filename") if part.get("type") == "file" else None
    name = f'"{filename}"' if filename else modality
    return {"type": "text", "text": unsupported_text(name, modality)}


def unsupported_parts(messages: Sequence[Message], model: ModelDescriptor) -> list[Message]:
    """Replace user attachments the model cannot read with explanatory text.

    Empty base64 images become a fixed error text. Images, audio, video and
    PDFs whose modality the model does not accept become a text part naming
    the file (or the modality) so the conversation can tell the user.
    Unclassifiable media types pass through.
    """
    result: list[Message] = []
    for message in messages:
        content = message.get("content")
        if message.get("role") != "user" or not isinstance(content, list):
            result.append(message)
            continue
        result.append({**message, "content": [_sanitize_part(p, model) for p in content]})
    return result


def empty_tool_call_content(messages: Sequence[Message]) -> list[Message]:
    """Send ``None`` instead of blank text on assistant tool-call turns.

    Some upstream APIs reject an empty-but-present ``content`` when the
    assistant message carries ``tool_calls``.
    """
    result: list[Message] = []
    for message in messages:
        content = message.get("content")
        if (
            message.get("role") == "assistant"
            and message.get("tool_calls")
            and isinstance(content, str)
            and not content.strip()
        ):
            result.append({**message, "content": None})
        else:
            result.append(message)
    return result


def sanitize_messages(messages: Sequence[Message], model: ModelDescriptor) -> list[Message]:
    """Apply every outgoing message rule. Idempotent."""
    return empty_tool_call_content(unsupported_parts(messages, model))


def clean_schema(schema: Mapping[str, Any]) -> dict[str, Any]:
    """Strip top-level JSON-schema keys some upstream APIs reject."""
    cleaned = dict(schema)
    cleaned.pop("$schema", None)
    cleaned.pop("additionalProperties", None)
    return cleaned


def max_output_tokens(model_limit: int, global_limit: int) -> int:
    return min(model_limit or global_limit, global_limit)
