"""Identity and meta builders for OpenAI Responses API calls.

Use them as a :class:`~agent_cassette.session.models.CallStrategy`::

    strategy = CallStrategy(
        build_identity=lambda params: build_openai_responses_identity(params),
        build_meta=extract_openai_usage_meta,
    )
    create = session.wrap("openai.responses.create", client.responses.create, strategy)

The identity keeps what determines the model's answer (model, instructions,
input messages, tool names and, in the ``strict`` profile, sampling
parameters) and drops transport details such as ``store``, ``user`` or
metadata.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping

HashProfile = Literal["strict", "lenient"]


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n")


def _normalize_input(value: Any) -> Any:
    if isinstance(value, str):
        return _normalize_newlines(value).strip()
    if isinstance(value, list):
        normalized = []
        for message in value:
            if isinstance(message, Mapping):
                role = message.get("role")
                content = message.get("content")
                if isinstance(content, str):
                    content = _normalize_newlines(content).strip()
                normalized_message: dict[str, Any] = {"content": content}
                if isinstance(role, str):
                    normalized_message["role"] = role
                normalized.append(normalized_message)
            else:
                normalized.append(message)
        return normalized
    return value


def _tool_descriptor(tool: Any) -> str:
    if not isinstance(tool, Mapping):
        return "unknown"
    tool_type = tool.get("type") if isinstance(tool.get("type"), str) else "unknown"
    name = tool.get("name")
    if not isinstance(name, str):
        function = tool.get("function")
        name = function.get("name") if isinstance(function, Mapping) else None
    if isinstance(name, str):
        return f"{tool_type}:{name}"
    return tool_type


def _normalize_tools(tools: Any) -> list[str]:
    if not isinstance(tools, list):
        return []
    return sorted({_tool_descriptor(tool) for tool in tools})


def _number_or_none(value: Any) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def build_openai_responses_identity(
    params: Mapping[str, Any], hash_profile: HashProfile = "strict"
) -> dict[str, Any]:
    if hash_profile not in ("strict", "lenient"):
        raise ValueError(f"Unknown hash profile: {hash_profile!r}")

    instructions = params.get("instructions")
    identity: dict[str, Any] = {
        "model": params.get("model"),
        "instructions": _normalize_newlines(instructions).strip()
        if isinstance(instructions, str)
        else None,
        "input": _normalize_input(params.get("input")),
        "tools": _normalize_tools(params.get("tools")),
    }
    if hash_profile == "strict":
        identity["temperature"] = _number_or_none(params.get("temperature"))
        identity["top_p"] = _number_or_none(params.get("top_p"))
        identity["max_output_tokens"] = _number_or_none(params.get("max_output_tokens"))
        identity["tool_choice"] = params.get("tool_choice")

    # absent and None hash the same way
    return {key: value for key, value in identity.items() if value is not None}


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_openai_usage_meta(response: Any) -> dict[str, Any] | None:
    """Token counts from a Responses API result (dict or SDK object), if present."""
    if response is None:
        return None
    usage = _field(response, "usage")
    if usage is None:
        return None
    total_tokens = _number_or_none(_field(usage, "total_tokens"))
    if total_tokens is None:
        return None
    meta: dict[str, Any] = {"total_tokens": total_tokens}
    input_tokens = _number_or_none(_field(usage, "input_tokens"))
    output_tokens = _number_or_none(_field(usage, "output_tokens"))
    if input_tokens is not None:
        meta["input_tokens"] = input_tokens
    if output_tokens is not None:
        meta["output_tokens"] = output_tokens
    return meta
