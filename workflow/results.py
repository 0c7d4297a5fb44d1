"""Normalize remote and local generation results into one Python shape per operation."""

import json
from typing import Any

from config.exceptions import LLMResponseParseError
from models.enums import OperationKind
from models.outline import OutlineNode, assign_ids_to_list, assign_node_ids
from models.request import GenerationRequest
from tools.response_sanitizer import parse_json_response

_TEXT_KEYS = ("content", "text", "result", "keyword")


def _as_json(data: Any) -> Any:
    if isinstance(data, str):
        return parse_json_response(data)
    return data


def _looks_like_node(value: Any) -> bool:
    return isinstance(value, dict) and "name" in value and ("children" in value or "type" in value)


def _require_name(data: dict) -> None:
    """Placeholder payloads such as ``{"message": ...}`` are not outline nodes."""
    if not str(data.get("name") or data.get("title") or "").strip():
        raise LLMResponseParseError("Outline node has no name", raw_response=json.dumps(data, ensure_ascii=False))


def to_text(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data.strip()
    if isinstance(data, dict):
        for key in _TEXT_KEYS:
            if isinstance(data.get(key), str):
                return data[key].strip()
    return json.dumps(data, ensure_ascii=False)


def to_keyword(data: Any) -> str:
    """First non-empty line, stripped of quotes and list markers."""
    text = to_text(data)
    for line in text.splitlines():
        line = line.strip().lstrip("-*#0123456789. ").strip("\"'“”「」《》 ")
        if line:
            return line
    return ""


def to_story_ideas(data: Any) -> list[dict]:
    data = _as_json(data)
    if isinstance(data, dict):
        ideas = data.get("ideas")
        if isinstance(ideas, list):
            data = ideas
        else:
            return [data]
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    raise LLMResponseParseError("Story ideas must be a JSON object or array", raw_response=str(data))


def to_outline_node(data: Any, parent_id: str = "root") -> OutlineNode:
    data = _as_json(data)
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if not isinstance(data, dict):
        raise LLMResponseParseError("Outline node must be a JSON object", raw_response=str(data))
    _require_name(data)
    return assign_node_ids(OutlineNode.from_dict(data), parent_id)


def to_outline_children(data: Any, parent_id: str = "root") -> list[OutlineNode]:
    data = _as_json(data)
    if isinstance(data, dict):
        data = data.get("children", [data])
    if not isinstance(data, list):
        raise LLMResponseParseError("Expanded nodes must be a JSON array", raw_response=str(data))
    nodes = [d for d in data if isinstance(d, dict)]
    for node in nodes:
        _require_name(node)
    return assign_ids_to_list([OutlineNode.from_dict(d) for d in nodes], parent_id)


def to_architecture(data: Any) -> dict:
    """Architecture map: node-shaped values become OutlineNode trees."""
    data = _as_json(data)
    if not isinstance(data, dict):
        raise LLMResponseParseError("Architecture must be a JSON object", raw_response=str(data))
    result = {}
    for key, value in data.items():
        if _looks_like_node(value):
            result[key] = assign_node_ids(OutlineNode.from_dict(value), key)
        elif isinstance(value, list) and value and all(_looks_like_node(v) for v in value):
            result[key] = assign_ids_to_list([OutlineNode.from_dict(v) for v in value], key)
        else:
            result[key] = value
    return result


def normalize_result(request: GenerationRequest, data: Any) -> Any:
    """Shape a raw result (remote JSON or model text) for ``request.kind``."""
    kind = request.kind
    if kind == OperationKind.DAILY_STORIES:
        return to_story_ideas(data)
    if kind == OperationKind.NOVEL_ARCHITECTURE:
        return to_architecture(data)
    if kind == OperationKind.REGENERATE_MAP:
        return to_outline_node(data, request.payload.get("map_type") or "root")
    if kind == OperationKind.EXPAND_NODE:
        node = request.payload.get("node") or {}
        return to_outline_children(data, node.get("id") or "root")
    if kind == OperationKind.ANALYZE_TREND:
        return to_keyword(data)
    return to_text(data)
