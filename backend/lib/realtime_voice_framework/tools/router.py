"""
Function call router.

The remote agent emits named function calls with JSON arguments. Each
registered `FunctionSpec` declares the argument shape (a pydantic model),
the JSON-schema definition advertised to the agent, and the handler that
runs it. Failures never escape `dispatch`: they become error-shaped
results that the agent can react to conversationally.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from ..core.bus import invoke
from ..protocol.commands import function_call_output, response_create
from ..protocol.events import FunctionCallArgumentsDone

logger = logging.getLogger(__name__)

Handler = Callable[[Any, FunctionCallArgumentsDone], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]


@dataclass
class FunctionSpec:
    """A function the remote agent may call."""
    name: str
    description: str
    parameters: Dict[str, Any]
    arguments_model: Type[BaseModel]
    handler: Handler
    # False for calls that end the session: no output, no continue
    reply: bool = True

    def definition(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass
class DispatchResult:
    """What happened to one function call."""
    name: str
    call_id: str
    output: Dict[str, Any]
    replied: bool = False
    handled: bool = False
    arguments: Optional[BaseModel] = field(default=None, repr=False)


def error_result(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


class FunctionCallRouter:
    """Validates, runs and answers function calls."""

    def __init__(self, send: Callable[[Dict[str, Any]], bool]):
        """
        Args:
            send: Writes a command to the control channel; returns False if dropped
        """
        self._send = send
        self._specs: Dict[str, FunctionSpec] = {}

    def register(self, spec: FunctionSpec) -> None:
        if spec.name in self._specs:
            logger.warning(f"⚠️ Replacing function handler '{spec.name}'")
        self._specs[spec.name] = spec

    def get(self, name: str) -> Optional[FunctionSpec]:
        return self._specs.get(name)

    def definitions(self) -> List[Dict[str, Any]]:
        """Tool definitions for the session-configure command."""
        return [spec.definition() for spec in self._specs.values()]

    async def dispatch(self, call: FunctionCallArgumentsDone) -> DispatchResult:
        """
        Run one function call and reply on the control channel.

        Unknown names, malformed JSON, validation failures and handler
        exceptions all produce `{"success": False, "error": ...}` and are
        replied to like any other result.
        """
        logger.info(f"🔧 Function call: {call.name} (call_id={call.call_id})")
        spec = self._specs.get(call.name)

        if spec is None:
            logger.warning(f"⚠️ Unsupported function: {call.name}")
            result = DispatchResult(call.name, call.call_id, error_result(f"Unsupported function: {call.name}"))
            result.replied = self._reply(call.call_id, result.output)
            return result

        result = DispatchResult(call.name, call.call_id, {})
        try:
            raw = json.loads(call.arguments or "{}")
            if not isinstance(raw, dict):
                raise ValueError("arguments must be a JSON object")
            arguments = spec.arguments_model.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Invalid arguments for {call.name}: {e.error_count()} error(s)")
            result.output = error_result(f"Invalid arguments for {call.name}: {_summarize(e)}")
            result.replied = self._reply(call.call_id, result.output)
            return result
        except ValueError as e:
            logger.warning(f"⚠️ Malformed arguments for {call.name}: {e}")
            result.output = error_result(f"Malformed arguments for {call.name}: {e}")
            result.replied = self._reply(call.call_id, result.output)
            return result

        result.arguments = arguments
        try:
            output = await invoke(spec.handler, arguments, call)
            result.output = output if isinstance(output, dict) else {"success": True, "result": output}
            result.handled = True
        except Exception as e:
            logger.error(f"❌ Function {call.name} failed: {e}", exc_info=True)
            result.output = error_result(str(e) or type(e).__name__)

        if spec.reply:
            result.replied = self._reply(call.call_id, result.output)
        return result

    def _reply(self, call_id: str, output: Dict[str, Any]) -> bool:
        """Send the call output, then ask the agent to continue."""
        if not self._send(function_call_output(call_id, output)):
            return False
        return self._send(response_create())


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)
