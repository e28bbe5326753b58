"""
Unit tests for the control-channel protocol: event decoding and command builders.
"""

import json

import pytest

from lib.realtime_voice_framework.core.errors import ProtocolDecodeError
from lib.realtime_voice_framework.protocol import (
    AgentTranscriptDone,
    AudioChunk,
    AudioDone,
    ErrorEvent,
    FunctionCallArgumentsDone,
    ResponseDone,
    SpeechStarted,
    UnknownEvent,
    UserTranscriptDone,
    build_session_config,
    default_turn_detection,
    encode_command,
    function_call_output,
    parse_server_event,
    response_cancel,
    response_create,
    session_update,
)


class TestParseServerEvent:
    """Decoding inbound frames."""

    def test_parses_json_text(self):
        """Frames arrive as JSON text."""
        event = parse_server_event('{"type": "input_audio_buffer.speech_started", "event_id": "ev_1"}')
        assert isinstance(event, SpeechStarted)
        assert event.event_id == "ev_1"

    def test_parses_dict(self):
        event = parse_server_event({"type": "response.done"})
        assert isinstance(event, ResponseDone)
        assert event.raw == {"type": "response.done"}

    @pytest.mark.parametrize("wire_type", [
        "response.audio.delta",
        "response.output_audio.delta",
        "output_audio_buffer.started",
    ])
    def test_audio_chunk_spellings(self, wire_type):
        """Beta and GA names map to the same event."""
        assert isinstance(parse_server_event({"type": wire_type}), AudioChunk)

    @pytest.mark.parametrize("wire_type", ["response.audio.done", "response.output_audio.done"])
    def test_audio_done_spellings(self, wire_type):
        assert isinstance(parse_server_event({"type": wire_type}), AudioDone)

    def test_agent_transcript(self):
        event = parse_server_event({
            "type": "response.output_audio_transcript.done",
            "item_id": "item_1",
            "transcript": "Hi there, how are you?",
        })
        assert isinstance(event, AgentTranscriptDone)
        assert event.transcript == "Hi there, how are you?"
        assert event.item_id == "item_1"

    def test_user_transcript(self):
        event = parse_server_event({
            "type": "conversation.item.input_audio_transcription.completed",
            "transcript": "I'm good, thanks",
        })
        assert isinstance(event, UserTranscriptDone)
        assert event.transcript == "I'm good, thanks"

    def test_function_call(self):
        event = parse_server_event({
            "type": "response.function_call_arguments.done",
            "call_id": "call_42",
            "name": "advance_phase",
            "arguments": '{"next_phase": "questions"}',
        })
        assert isinstance(event, FunctionCallArgumentsDone)
        assert event.call_id == "call_42"
        assert event.name == "advance_phase"
        assert json.loads(event.arguments) == {"next_phase": "questions"}

    def test_function_call_without_arguments_defaults_to_empty_object(self):
        event = parse_server_event({"type": "response.function_call_arguments.done", "name": "x"})
        assert event.arguments == "{}"

    def test_error_event(self):
        event = parse_server_event({
            "type": "error",
            "error": {"type": "invalid_request_error", "code": "bad_value", "message": "Nope"},
        })
        assert isinstance(event, ErrorEvent)
        assert event.message == "Nope"
        assert event.code == "bad_value"
        assert event.error_type == "invalid_request_error"

    def test_error_event_without_details(self):
        event = parse_server_event({"type": "error"})
        assert event.message == "Unknown error"

    def test_unknown_type_is_not_an_error(self):
        """New server event kinds must never break a session."""
        event = parse_server_event({"type": "response.text.delta", "delta": "hi"})
        assert isinstance(event, UnknownEvent)
        assert event.type == "response.text.delta"

    def test_invalid_json_raises(self):
        with pytest.raises(ProtocolDecodeError):
            parse_server_event("{not json")

    @pytest.mark.parametrize("payload", [{}, {"type": 3}, [1, 2], '"text"'])
    def test_missing_type_raises(self, payload):
        with pytest.raises(ProtocolDecodeError):
            parse_server_event(payload)


class TestCommands:
    """Outbound command builders."""

    def test_session_update_wraps_config(self):
        config = build_session_config(voice="ash", instructions="Be nice", tools=[{"name": "t"}])
        command = session_update(config)
        assert command["type"] == "session.update"
        session = command["session"]
        assert session["voice"] == "ash"
        assert session["instructions"] == "Be nice"
        assert session["modalities"] == ["text", "audio"]
        assert session["input_audio_transcription"] == {"model": "whisper-1"}
        assert session["tool_choice"] == "auto"
        assert session["tools"] == [{"name": "t"}]
        assert session["temperature"] == 0.7
        assert session["turn_detection"] == default_turn_detection()

    def test_session_config_without_voice_omits_it(self):
        assert "voice" not in build_session_config(voice=None, instructions="x")

    def test_default_turn_detection_allows_barge_in(self):
        policy = default_turn_detection()
        assert policy["type"] == "semantic_vad"
        assert policy["create_response"] is True
        assert policy["interrupt_response"] is True

    def test_response_create_with_override(self):
        command = response_create(instructions="Greet them")
        assert command == {"type": "response.create", "response": {"instructions": "Greet them"}}

    def test_response_create_plain(self):
        assert response_create() == {"type": "response.create", "response": {}}

    def test_response_cancel(self):
        assert response_cancel() == {"type": "response.cancel"}

    def test_function_call_output_is_tagged_and_json_encoded(self):
        command = function_call_output("call_7", {"success": True, "phase": "questions"})
        assert command["type"] == "conversation.item.create"
        item = command["item"]
        assert item["type"] == "function_call_output"
        assert item["call_id"] == "call_7"
        assert json.loads(item["output"]) == {"success": True, "phase": "questions"}

    def test_encode_command(self):
        assert json.loads(encode_command(response_cancel())) == {"type": "response.cancel"}
