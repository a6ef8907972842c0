"""Tests for outgoing message normalization."""

import copy

import pytest

from corethink.models.provider import ModelApi, ModelCapabilities, ModelDescriptor, ModelLimit, Modalities
from corethink.providers.catalog import corethink_model
from corethink.services.transform import (
    EMPTY_IMAGE_TEXT,
    clean_schema,
    empty_tool_call_content,
    max_output_tokens,
    mime_to_modality,
    sanitize_messages,
    unsupported_parts,
)


def text_only_model() -> ModelDescriptor:
    return ModelDescriptor(
        id="plain",
        provider_id="test",
        name="Plain",
        api=ModelApi(id="plain", url="https://x.test/v1", library="openai-compatible"),
        limit=ModelLimit(context=8000, output=1000),
        capabilities=ModelCapabilities(input=Modalities(text=True)),
    )


TOOL_CALL = {"id": "call_1", "type": "function", "function": {"name": "read", "arguments": "{}"}}


@pytest.mark.unit
class TestMimeToModality:
    @pytest.mark.parametrize(
        ("mime", "expected"),
        [
            ("image/png", "image"),
            ("audio/mpeg", "audio"),
            ("video/mp4", "video"),
            ("application/pdf", "pdf"),
            ("text/plain", None),
            ("", None),
        ],
    )
    def test_mapping(self, mime: str, expected: str | None) -> None:
        assert mime_to_modality(mime) == expected


@pytest.mark.unit
class TestEmptyToolCallContent:
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_content_becomes_none(self, content: str) -> None:
        messages = [{"role": "assistant", "content": content, "tool_calls": [TOOL_CALL]}]

        result = empty_tool_call_content(messages)

        assert result == [{"role": "assistant", "content": None, "tool_calls": [TOOL_CALL]}]
        assert messages[0]["content"] == content

    def test_text_is_kept(self) -> None:
        message = {"role": "assistant", "content": "Reading file", "tool_calls": [TOOL_CALL]}
        assert empty_tool_call_content([message]) == [message]

    def test_without_tool_calls_blank_content_is_kept(self) -> None:
        message = {"role": "assistant", "content": "  "}
        assert empty_tool_call_content([message]) == [message]

    def test_empty_tool_calls_list_is_ignored(self) -> None:
        message = {"role": "assistant", "content": "", "tool_calls": []}
        assert empty_tool_call_content([message]) == [message]

    def test_other_roles_untouched(self) -> None:
        message = {"role": "user", "content": "", "tool_calls": [TOOL_CALL]}
        assert empty_tool_call_content([message]) == [message]


@pytest.mark.unit
class TestUnsupportedParts:
    def test_audio_file_becomes_error_text_naming_the_file(self) -> None:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "transcribe this"},
                    {"type": "file", "data": "QUJD", "media_type": "audio/mpeg", "filename": "song.mp3"},
                ],
            }
        ]

        result = unsupported_parts(messages, corethink_model())

        assert result[0]["content"][0] == {"type": "text", "text": "transcribe this"}
        replaced = result[0]["content"][1]
        assert replaced["type"] == "text"
        assert '"song.mp3"' in replaced["text"]
        assert "audio" in replaced["text"]
        assert replaced["text"].startswith("ERROR: Cannot read")

    def test_unnamed_file_is_named_by_modality(self) -> None:
        messages = [{"role": "user", "content": [{"type": "file", "data": "QUJD", "media_type": "video/mp4"}]}]

        text = unsupported_parts(messages, corethink_model())[0]["content"][0]["text"]

        assert text == (
            "ERROR: Cannot read video (this model does not support video input). Inform the user."
        )

    def test_supported_attachments_pass_through(self) -> None:
        image = {"type": "image", "image": "data:image/png;base64,iVBORw0KGgo="}
        pdf = {"type": "file", "data": "JVBERi0=", "media_type": "application/pdf", "filename": "a.pdf"}
        messages = [{"role": "user", "content": [image, pdf]}]

        result = unsupported_parts(messages, corethink_model())

        assert result[0]["content"] == [image, pdf]

    def test_unsupported_image_on_text_only_model(self) -> None:
        part = {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,/9j/4AAQ"}}
        messages = [{"role": "user", "content": [part]}]

        text = unsupported_parts(messages, text_only_model())[0]["content"][0]["text"]

        assert "does not support image input" in text

    @pytest.mark.parametrize(
        "part",
        [
            {"type": "image", "image": "data:image/png;base64,"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,"}},
        ],
    )
    def test_empty_base64_image(self, part: dict) -> None:
        messages = [{"role": "user", "content": [part]}]

        result = unsupported_parts(messages, corethink_model())

        assert result[0]["content"] == [{"type": "text", "text": EMPTY_IMAGE_TEXT}]

    def test_unknown_media_type_passes_through(self) -> None:
        part = {"type": "file", "data": "aGk=", "media_type": "text/plain", "filename": "a.txt"}
        messages = [{"role": "user", "content": [part]}]
        assert unsupported_parts(messages, text_only_model())[0]["content"] == [part]

    def test_remote_image_url_passes_through(self) -> None:
        part = {"type": "image", "image": "https://example.com/cat.png"}
        messages = [{"role": "user", "content": [part]}]
        assert unsupported_parts(messages, corethink_model())[0]["content"] == [part]

    def test_only_user_messages_are_touched(self) -> None:
        part = {"type": "file", "data": "QUJD", "media_type": "audio/mpeg"}
        messages = [{"role": "assistant", "content": [part]}, {"role": "user", "content": "hi"}]
        assert unsupported_parts(messages, corethink_model()) == messages


@pytest.mark.unit
class TestSanitizeMessages:
    def messages(self) -> list[dict]:
        return [
            {"role": "system", "content": "be brief"},
            {
                "role": "user",
                "content": [
                    {"type": "file", "data": "QUJD", "media_type": "audio/wav", "filename": "a.wav"},
                    {"type": "image", "image": "data:image/png;base64,"},
                ],
            },
            {"role": "assistant", "content": " ", "tool_calls": [TOOL_CALL]},
            {"role": "tool", "tool_call_id": "call_1", "content": "ok"},
        ]

    def test_does_not_mutate_input(self) -> None:
        messages = self.messages()
        snapshot = copy.deepcopy(messages)

        sanitize_messages(messages, corethink_model())

        assert messages == snapshot

    def test_applies_every_rule(self) -> None:
        result = sanitize_messages(self.messages(), corethink_model())

        assert result[0] == {"role": "system", "content": "be brief"}
        assert [p["type"] for p in result[1]["content"]] == ["text", "text"]
        assert result[1]["content"][1]["text"] == EMPTY_IMAGE_TEXT
        assert result[2]["content"] is None
        assert result[3]["content"] == "ok"

    def test_idempotent(self) -> None:
        model = corethink_model()
        once = sanitize_messages(self.messages(), model)
        assert sanitize_messages(once, model) == once


@pytest.mark.unit
class TestSchemaAndLimits:
    def test_clean_schema_strips_rejected_keys(self) -> None:
        schema = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "object",
            "additionalProperties": False,
            "properties": {"a": {"type": "string"}},
        }

        cleaned = clean_schema(schema)

        assert cleaned == {"type": "object", "properties": {"a": {"type": "string"}}}
        assert "$schema" in schema

    @pytest.mark.parametrize(
        ("model_limit", "global_limit", "expected"),
        [(8000, 32000, 8000), (64000, 32000, 32000), (0, 32000, 32000)],
    )
    def test_max_output_tokens(self, model_limit: int, global_limit: int, expected: int) -> None:
        assert max_output_tokens(model_limit, global_limit) == expected
