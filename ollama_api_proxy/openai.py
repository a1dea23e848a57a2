"""Request and response types of the OpenAI-compatible REST API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable

from . import ollama

FINISH_REASON_TOOL_CALLS = "tool_calls"


class RequestValidationError(ValueError):
    """A request body does not have the expected shape."""


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_list(value: Any) -> bool:
    return isinstance(value, list)


def _is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what}: expected a JSON object, got {_json_type(data)}")
    return data


def _typed(
    data: Mapping[str, Any],
    key: str,
    check: Callable[[Any], bool],
    expected: str,
    default: Any = None,
) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not check(value):
        raise ValueError(f"field {key!r}: expected {expected}, got {_json_type(value)}")
    return value


def _sort_any(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _sort_any(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_sort_any(item) for item in value]
    return value


@dataclass
class ApiError:
    """The error object of an OpenAI-style error body."""

    message: str = ""
    type: str = ""
    param: Any = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.type,
            "param": self.param,
            "code": self.code,
        }


@dataclass
class ApiErrorResponse:
    """An OpenAI-style error body."""

    error: ApiError = field(default_factory=ApiError)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error.to_dict()}


def new_error(code: int, message: str) -> ApiErrorResponse:
    """Build an error body whose type follows from the HTTP status code."""
    if code == HTTPStatus.BAD_REQUEST:
        error_type = "invalid_request_error"
    elif code == HTTPStatus.NOT_FOUND:
        error_type = "not_found_error"
    else:
        error_type = "api_error"
    return ApiErrorResponse(ApiError(message=message, type=error_type))


@dataclass
class _ToolCall:
    id: str = ""
    index: int = 0
    type: str = ""
    name: str = ""
    arguments: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> _ToolCall:
        data = _mapping(data, "tool call")
        function = _mapping(data.get("function") or {}, "tool call function")
        return cls(
            id=_typed(data, "id", _is_str, "string", ""),
            index=_typed(data, "index", _is_int, "integer", 0),
            type=_typed(data, "type", _is_str, "string", ""),
            name=_typed(function, "name", _is_str, "string", ""),
            arguments=_typed(function, "arguments", _is_str, "string", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class Message:
    """A chat message; content may be text or structured parts."""

    role: str = ""
    content: Any = None
    tool_calls: list[_ToolCall] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        data = _mapping(data, "message")
        raw_calls = _typed(data, "tool_calls", _is_list, "array", [])
        return cls(
            role=_typed(data, "role", _is_str, "string", ""),
            content=data.get("content"),
            tool_calls=[_ToolCall.from_dict(item) for item in raw_calls],
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role, "content": _sort_any(self.content)}
        if self.tool_calls:
            result["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return result


@dataclass
class ResponseFormat:
    """The requested response format; json_schema holds the "schema" member."""

    type: str = ""
    json_schema: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ResponseFormat:
        data = _mapping(data, "response format")
        raw_schema = data.get("json_schema")
        json_schema = None
        if raw_schema is not None:
            json_schema = {"schema": _mapping(raw_schema, "json schema").get("schema")}
        return cls(
            type=_typed(data, "type", _is_str, "string", ""),
            json_schema=json_schema,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.json_schema is not None:
            result["json_schema"] = {"schema": _sort_any(self.json_schema.get("schema"))}
        return result


@dataclass
class StreamOptions:
    """Options that apply to streamed responses."""

    include_usage: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> StreamOptions:
        data = _mapping(data, "stream options")
        return cls(include_usage=_typed(data, "include_usage", _is_bool, "boolean", False))

    def to_dict(self) -> dict[str, Any]:
        return {"include_usage": self.include_usage}


@dataclass
class ChatCompletionRequest:
    """A chat completion request, as accepted and forwarded by the proxy."""

    model: str = ""
    messages: list[Message] | None = None
    stream: bool = False
    stream_options: StreamOptions | None = None
    max_tokens: int | None = None
    seed: int | None = None
    stop: Any = None
    temperature: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    top_p: float | None = None
    response_format: ResponseFormat | None = None
    tools: list[ollama.Tool] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ChatCompletionRequest:
        """Read a decoded JSON body; raise RequestValidationError on a bad shape."""
        try:
            data = _mapping(data, "chat completion request")
            raw_messages = _typed(data, "messages", _is_list, "array")
            raw_options = _typed(data, "stream_options", _is_mapping, "object")
            raw_format = _typed(data, "response_format", _is_mapping, "object")
            raw_tools = _typed(data, "tools", _is_list, "array")

            def number(key: str) -> float | None:
                value = _typed(data, key, _is_number, "number")
                return None if value is None else float(value)

            return cls(
                model=_typed(data, "model", _is_str, "string", ""),
                messages=(
                    None if raw_messages is None else [Message.from_dict(item) for item in raw_messages]
                ),
                stream=_typed(data, "stream", _is_bool, "boolean", False),
                stream_options=None if raw_options is None else StreamOptions.from_dict(raw_options),
                max_tokens=_typed(data, "max_tokens", _is_int, "integer"),
                seed=_typed(data, "seed", _is_int, "integer"),
                stop=data.get("stop"),
                temperature=number("temperature"),
                frequency_penalty=number("frequency_penalty"),
                presence_penalty=number("presence_penalty"),
                top_p=number("top_p"),
                response_format=None if raw_format is None else ResponseFormat.from_dict(raw_format),
                tools=None if raw_tools is None else [ollama.Tool.from_dict(item) for item in raw_tools],
            )
        except RequestValidationError:
            raise
        except (ValueError, TypeError) as exc:
            raise RequestValidationError(str(exc)) from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": (
                None if self.messages is None else [message.to_dict() for message in self.messages]
            ),
            "stream": self.stream,
            "stream_options": None if self.stream_options is None else self.stream_options.to_dict(),
            "max_tokens": self.max_tokens,
            "seed": self.seed,
            "stop": _sort_any(self.stop),
            "temperature": self.temperature,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
            "top_p": self.top_p,
            "response_format": None if self.response_format is None else self.response_format.to_dict(),
            "tools": None if self.tools is None else [tool.to_dict() for tool in self.tools],
        }


@dataclass
class Model:
    """A model entry of a model listing."""

    id: str = ""
    object: str = ""
    created: int = 0
    owned_by: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Model:
        data = _mapping(data, "model")
        return cls(
            id=_typed(data, "id", _is_str, "string", ""),
            object=_typed(data, "object", _is_str, "string", ""),
            created=_typed(data, "created", _is_int, "integer", 0),
            owned_by=_typed(data, "owned_by", _is_str, "string", ""),
        )


@dataclass
class ListModels:
    """A model listing; its object kind travels under the "string" key."""

    object: str | None = None
    data: list[Model] = field(default_factory=list)
    success: bool | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ListModels:
        if data is None:
            return cls()
        data = _mapping(data, "model listing")
        return cls(
            object=_typed(data, "string", _is_str, "string"),
            data=[Model.from_dict(item) for item in _typed(data, "data", _is_list, "array", [])],
            success=_typed(data, "success", _is_bool, "boolean"),
        )