"""Request and response types of the Ollama-style API, with their JSON forms."""

from __future__ import annotations

import base64
import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TextIO

from .capability import Capability
from .durations import MAX_DURATION, MINUTE, SECOND, format_duration, parse_duration

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> str:
    """Encode compactly, escaping HTML-sensitive characters."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    for raw in "<>&\u2028\u2029":
        text = text.replace(raw, f"\\u{ord(raw):04x}")
    return text


def _sort_any(value: Any) -> Any:
    """Order the keys of free-form maps, recursively."""
    if isinstance(value, Mapping):
        return {key: _sort_any(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_sort_any(item) for item in value]
    return value


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


def _get(data: Mapping[str, Any], key: str, kind: type, default: Any = None) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"field {key!r}: expected {kind.__name__}, got {type(value).__name__}")
    return value


class StatusError(Exception):
    """An error carrying an HTTP status code and message."""

    def __init__(self, status_code: int = 0, status: str = "", error_message: str = "") -> None:
        super().__init__(status_code, status, error_message)
        self.status_code = status_code
        self.status = status
        self.error_message = error_message

    def __str__(self) -> str:
        if self.status and self.error_message:
            return f"{self.status}: {self.error_message}"
        return (
            self.status
            or self.error_message
            or "something went wrong, please see the ollama server logs for details"
        )


@dataclass
class ToolCallFunction:
    """The function a model asked to call."""

    index: int = 0
    name: str = ""
    arguments: dict[str, Any] | None = None


@dataclass
class ToolCall:
    """A tool call emitted by a model."""

    function: ToolCallFunction = field(default_factory=ToolCallFunction)

    @classmethod
    def from_dict(cls, data: Any) -> ToolCall:
        raw = _mapping(data, "tool call").get("function")
        if raw is None:
            return cls()
        raw = _mapping(raw, "tool call function")
        arguments = _get(raw, "arguments", Mapping)
        return cls(
            ToolCallFunction(
                index=_get(raw, "index", int, 0),
                name=_get(raw, "name", str, ""),
                arguments=None if arguments is None else dict(arguments),
            )
        )

    def to_dict(self) -> dict[str, Any]:
        function: dict[str, Any] = {"index": self.function.index} if self.function.index else {}
        function["name"] = self.function.name
        function["arguments"] = _sort_any(self.function.arguments)
        return {"function": function}


@dataclass
class Message:
    """A chat message; roles are kept in lower case."""

    role: str = ""
    content: str = ""
    thinking: str = ""
    images: list[bytes] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        data = _mapping(data, "message")
        images = []
        for encoded in _get(data, "images", list, []):
            if not isinstance(encoded, str):
                raise ValueError("field 'images': expected base64 strings")
            images.append(base64.b64decode(encoded, validate=True))
        return cls(
            role=_get(data, "role", str, "").lower(),
            content=_get(data, "content", str, ""),
            thinking=_get(data, "thinking", str, ""),
            images=images,
            tool_calls=[ToolCall.from_dict(item) for item in _get(data, "tool_calls", list, [])],
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.thinking:
            result["thinking"] = self.thinking
        if self.images:
            result["images"] = [base64.b64encode(image).decode("ascii") for image in self.images]
        if self.tool_calls:
            result["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return result


@dataclass(frozen=True)
class Duration:
    """A keep-alive duration in nanoseconds; negative input means forever."""

    nanoseconds: int = 5 * MINUTE

    @classmethod
    def from_json(cls, value: Any) -> Duration:
        """Read a number of seconds or a duration string."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return cls(MAX_DURATION if value < 0 else int(value) * SECOND)
        if isinstance(value, str):
            nanoseconds = parse_duration(value)
            return cls(MAX_DURATION if nanoseconds < 0 else nanoseconds)
        raise TypeError(f"Unsupported type: '{type(value).__name__}'")

    def to_json(self) -> int | str:
        return -1 if self.nanoseconds < 0 else format_duration(self.nanoseconds)


@dataclass(frozen=True)
class PropertyType:
    """A JSON schema type: one name or several."""

    types: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, value: Any) -> PropertyType:
        if isinstance(value, str):
            return cls((value,))
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return cls(tuple(value))
        raise ValueError(f"property type must be a string or a list of strings, got {value!r}")

    def to_json(self) -> str | list[str]:
        return self.types[0] if len(self.types) == 1 else list(self.types)

    def __str__(self) -> str:
        if len(self.types) <= 1:
            return "".join(self.types)
        return "[" + " ".join(self.types) + "]"


@dataclass
class ToolProperty:
    """One parameter of a tool function."""

    type: PropertyType = field(default_factory=PropertyType)
    items: Any = None
    description: str = ""
    enum: list[Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ToolProperty:
        data = _mapping(data, "tool property")
        raw_type = data.get("type")
        return cls(
            type=PropertyType() if raw_type is None else PropertyType.from_json(raw_type),
            items=data.get("items"),
            description=_get(data, "description", str, ""),
            enum=_get(data, "enum", list),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type.to_json()}
        if self.items is not None:
            result["items"] = _sort_any(self.items)
        result["description"] = self.description
        if self.enum:
            result["enum"] = _sort_any(self.enum)
        return result


@dataclass
class ToolParameters:
    """The parameter schema of a tool function."""

    type: str = ""
    defs: Any = None
    items: Any = None
    required: list[str] | None = None
    properties: dict[str, ToolProperty] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ToolParameters:
        data = _mapping(data, "tool parameters")
        required = _get(data, "required", list)
        if required is not None and not all(isinstance(item, str) for item in required):
            raise ValueError("field 'required': expected a list of strings")
        properties = _get(data, "properties", Mapping)
        return cls(
            type=_get(data, "type", str, ""),
            defs=data.get("$defs"),
            items=data.get("items"),
            required=None if required is None else list(required),
            properties=(
                None
                if properties is None
                else {name: ToolProperty.from_dict(value) for name, value in properties.items()}
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.defs is not None:
            result["$defs"] = _sort_any(self.defs)
        if self.items is not None:
            result["items"] = _sort_any(self.items)
        result["required"] = self.required
        result["properties"] = (
            None
            if self.properties is None
            else {name: self.properties[name].to_dict() for name in sorted(self.properties)}
        )
        return result


@dataclass
class ToolFunction:
    """A function a model may call."""

    name: str = ""
    description: str = ""
    parameters: ToolParameters = field(default_factory=ToolParameters)

    @classmethod
    def from_dict(cls, data: Any) -> ToolFunction:
        data = _mapping(data, "tool function")
        parameters = data.get("parameters")
        return cls(
            name=_get(data, "name", str, ""),
            description=_get(data, "description", str, ""),
            parameters=ToolParameters() if parameters is None else ToolParameters.from_dict(parameters),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters.to_dict(),
        }

    def __str__(self) -> str:
        return _to_json(self.to_dict())


@dataclass
class Tool:
    """A tool made available to a model."""

    type: str = ""
    items: Any = None
    function: ToolFunction = field(default_factory=ToolFunction)

    @classmethod
    def from_dict(cls, data: Any) -> Tool:
        data = _mapping(data, "tool")
        function = data.get("function")
        return cls(
            type=_get(data, "type", str, ""),
            items=data.get("items"),
            function=ToolFunction() if function is None else ToolFunction.from_dict(function),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.items is not None:
            result["items"] = _sort_any(self.items)
        result["function"] = self.function.to_dict()
        return result

    def __str__(self) -> str:
        return _to_json(self.to_dict())


@dataclass
class ChatRequest:
    """A chat request."""

    model: str = ""
    messages: list[Message] = field(default_factory=list)
    stream: bool | None = None
    format: Any = None
    keep_alive: Duration | None = None
    tools: list[Tool] = field(default_factory=list)
    options: dict[str, Any] | None = None
    think: bool | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ChatRequest:
        data = _mapping(data, "chat request")
        keep_alive = data.get("keep_alive")
        options = _get(data, "options", Mapping)
        return cls(
            model=_get(data, "model", str, ""),
            messages=[Message.from_dict(item) for item in _get(data, "messages", list, [])],
            stream=_get(data, "stream", bool),
            format=data.get("format"),
            keep_alive=None if keep_alive is None else Duration.from_json(keep_alive),
            tools=[Tool.from_dict(item) for item in _get(data, "tools", list, [])],
            options=None if options is None else dict(options),
            think=_get(data, "think", bool),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
        }
        if self.stream is not None:
            result["stream"] = self.stream
        if self.format is not None:
            result["format"] = self.format
        if self.keep_alive is not None:
            result["keep_alive"] = self.keep_alive.to_json()
        if self.tools:
            result["tools"] = [tool.to_dict() for tool in self.tools]
        result["options"] = _sort_any(self.options)
        if self.think is not None:
            result["think"] = self.think
        return result


@dataclass
class Metrics:
    """Timing and token counts of a generation; durations in nanoseconds."""

    total_duration: int = 0
    load_duration: int = 0
    prompt_eval_count: int = 0
    prompt_eval_duration: int = 0
    eval_count: int = 0
    eval_duration: int = 0

    def summary(self, stream: TextIO | None = None) -> None:
        """Print the non-zero metrics, to stderr unless a stream is given."""
        out = sys.stderr if stream is None else stream
        if self.total_duration > 0:
            out.write(f"total duration:       {format_duration(self.total_duration)}\n")
        if self.load_duration > 0:
            out.write(f"load duration:        {format_duration(self.load_duration)}\n")
        if self.prompt_eval_count > 0:
            out.write(f"prompt eval count:    {self.prompt_eval_count} token(s)\n")
        if self.prompt_eval_duration > 0:
            rate = self.prompt_eval_count / (self.prompt_eval_duration / SECOND)
            out.write(f"prompt eval duration: {format_duration(self.prompt_eval_duration)}\n")
            out.write(f"prompt eval rate:     {rate:.2f} tokens/s\n")
        if self.eval_count > 0:
            out.write(f"eval count:           {self.eval_count} token(s)\n")
        if self.eval_duration > 0:
            rate = self.eval_count / (self.eval_duration / SECOND)
            out.write(f"eval duration:        {format_duration(self.eval_duration)}\n")
            out.write(f"eval rate:            {rate:.2f} tokens/s\n")


@dataclass
class Runner:
    """Options that take effect when a model is loaded."""

    num_ctx: int = 0
    num_batch: int = 0
    num_gpu: int = 0
    main_gpu: int = 0
    use_mmap: bool | None = None
    num_thread: int = 0


_RUNNER_KEYS = {"num_ctx", "num_batch", "num_gpu", "main_gpu", "use_mmap", "num_thread"}
_KINDS = {
    **dict.fromkeys(
        ("num_ctx", "num_batch", "num_gpu", "main_gpu", "num_thread", "num_keep",
         "seed", "num_predict", "top_k", "repeat_last_n"),
        "integer",
    ),
    **dict.fromkeys(
        ("top_p", "min_p", "typical_p", "temperature", "repeat_penalty",
         "presence_penalty", "frequency_penalty"),
        "float32",
    ),
    "use_mmap": "boolean",
    "stop": "array",
}


def _convert_option(key: str, kind: str, value: Any) -> Any:
    if kind == "boolean":
        if not isinstance(value, bool):
            raise ValueError(f'option "{key}" must be of type boolean')
        return value
    if kind == "array":
        if not isinstance(value, (list, tuple)):
            raise ValueError(f'option "{key}" must be of type array')
        if not all(isinstance(item, str) for item in value):
            raise ValueError(f'option "{key}" must be of an array of strings')
        return list(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'option "{key}" must be of type {kind}')
    return int(value) if kind == "integer" else float(value)


@dataclass
class Options:
    """Model options for a generation request."""

    runner: Runner = field(default_factory=Runner)
    num_keep: int = 0
    seed: int = 0
    num_predict: int = 0
    top_k: int = 0
    top_p: float = 0.0
    min_p: float = 0.0
    typical_p: float = 0.0
    repeat_last_n: int = 0
    temperature: float = 0.0
    repeat_penalty: float = 0.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    stop: list[str] | None = None

    def update_from_map(self, values: Mapping[str, Any]) -> None:
        """Set options from a JSON-decoded map; unknown keys are logged and skipped."""
        for key, value in values.items():
            kind = _KINDS.get(key)
            if kind is None:
                logger.warning("invalid option provided: %s", key)
                continue
            if value is not None:
                target = self.runner if key in _RUNNER_KEYS else self
                setattr(target, key, _convert_option(key, kind, value))


def default_options() -> Options:
    """Return the options used unless a request sets others."""
    return Options(
        num_predict=-1,
        num_keep=4,
        temperature=0.8,
        top_k=40,
        top_p=0.9,
        typical_p=1.0,
        repeat_last_n=64,
        repeat_penalty=1.1,
        seed=-1,
        runner=Runner(num_ctx=4096, num_batch=512, num_gpu=-1),
    )


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0
    if seconds == 0:
        return text + "Z"
    sign = "+" if seconds > 0 else "-"
    seconds = abs(seconds)
    return f"{text}{sign}{seconds // 3600:02d}:{seconds % 3600 // 60:02d}"


@dataclass
class ModelDetails:
    """Descriptive details of a model."""

    parent_model: str = ""
    format: str = ""
    family: str = ""
    families: list[str] | None = None
    parameter_size: str = ""
    quantization_level: str = ""

    def to_dict(self) -> dict[str, Any]:
        return dict(vars(self))


@dataclass
class ListModelResponse:
    """One entry in a model listing."""

    name: str = ""
    model: str = ""
    modified_at: datetime = datetime(1, 1, 1, tzinfo=timezone.utc)
    size: int = 0
    digest: str = ""
    capabilities: list[Capability] = field(default_factory=list)
    details: ModelDetails = field(default_factory=ModelDetails)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "model": self.model,
            "modified_at": _format_time(self.modified_at),
            "size": self.size,
            "digest": self.digest,
        }
        if self.capabilities:
            result["capabilities"] = [str(capability) for capability in self.capabilities]
        result["details"] = self.details.to_dict()
        return result


@dataclass
class ListResponse:
    """A model listing."""

    models: list[ListModelResponse] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"models": [entry.to_dict() for entry in self.models]}