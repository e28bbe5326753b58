"""
Outbound control-channel commands.

Builders return plain dicts; `encode_command` turns them into the JSON
text frames written to the data channel.
"""

import json
from typing import Any, Dict, List, Optional

DEFAULT_MODALITIES = ["text", "audio"]


def encode_command(command: Dict[str, Any]) -> str:
    """Serialize a command for the data channel."""
    return json.dumps(command)


def default_turn_detection() -> Dict[str, Any]:
    """Turn detection tuned for interviews: semantic VAD, barge-in enabled."""
    return {
        "type": "semantic_vad",
        "eagerness": "medium",
        "create_response": True,
        "interrupt_response": True,
    }


def build_session_config(
    voice: Optional[str],
    instructions: str,
    tools: Optional[List[Dict[str, Any]]] = None,
    turn_detection: Optional[Dict[str, Any]] = None,
    transcription_model: str = "whisper-1",
    temperature: float = 0.7,
) -> Dict[str, Any]:
    """
    Build the body of a session-configure command.

    Args:
        voice: Voice selector returned by the session issuer
        instructions: Directive text for the remote agent
        tools: Function definitions the agent may call
        turn_detection: Turn detection policy (defaults to semantic VAD)
        transcription_model: Model used to transcribe user audio
        temperature: Sampling temperature
    """
    session: Dict[str, Any] = {
        "modalities": list(DEFAULT_MODALITIES),
        "instructions": instructions,
        "input_audio_transcription": {"model": transcription_model},
        "turn_detection": turn_detection if turn_detection is not None else default_turn_detection(),
        "tools": list(tools or []),
        "tool_choice": "auto",
        "temperature": temperature,
    }
    if voice:
        session["voice"] = voice
    return session


def session_update(session: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "session.update", "session": session}


def response_create(
    instructions: Optional[str] = None,
    modalities: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Ask the agent to produce a response, optionally with an override directive."""
    response: Dict[str, Any] = {}
    if instructions:
        response["instructions"] = instructions
    if modalities:
        response["modalities"] = list(modalities)
    return {"type": "response.create", "response": response}


def response_cancel() -> Dict[str, Any]:
    return {"type": "response.cancel"}


def function_call_output(call_id: str, output: Any) -> Dict[str, Any]:
    """Return a function call's result to the agent, tagged by call id."""
    return {
        "type": "conversation.item.create",
        "item": {
            "type": "function_call_output",
            "call_id": call_id,
            "output": json.dumps(output),
        },
    }
