"""Typed walk over the nested JSON returned by the completion service.

The Responses API nests function calls and text at varying depths inside
``output`` and ``content`` wrappers. ``parse_node`` turns the raw JSON into a
small tree of tagged nodes, and the visitors below pull tool calls and text
back out of it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

import structlog

from .models import ToolCall

LOGGER = structlog.get_logger(__name__)

TOOL_CALL_TYPES = {"tool_call", "function_call"}
TEXT_PRIORITY = ("output_text", "text", "content", "output")


@dataclass(frozen=True)
class TextLeaf:
    text: str


@dataclass(frozen=True)
class ToolCallNode:
    name: str
    arguments: Any
    call_id: Optional[str] = None
    output: Optional["Node"] = None
    content: Optional["Node"] = None


@dataclass(frozen=True)
class OutputContainer:
    """Object whose payload lives under ``output``."""

    output: "Node"
    text: Optional["Node"] = None
    content: Optional["Node"] = None


@dataclass(frozen=True)
class ContentContainer:
    """Object with ``content`` (or only ``text``) and no ``output``."""

    content: Optional["Node"] = None
    text: Optional["Node"] = None


@dataclass(frozen=True)
class NodeList:
    items: List["Node"] = field(default_factory=list)


Node = Union[TextLeaf, ToolCallNode, OutputContainer, ContentContainer, NodeList]


def parse_node(raw: Any) -> Optional[Node]:
    """Convert decoded JSON into a tree of tagged nodes; ``None`` for empties."""
    if raw is None or raw == "" or raw == [] or raw == {}:
        return None
    if isinstance(raw, str):
        return TextLeaf(raw)
    if isinstance(raw, list):
        items = [node for node in (parse_node(item) for item in raw) if node is not None]
        return NodeList(items)
    if isinstance(raw, dict):
        output = parse_node(raw.get("output"))
        content = parse_node(raw.get("content"))
        if raw.get("type") in TOOL_CALL_TYPES and raw.get("name"):
            return ToolCallNode(
                name=str(raw["name"]),
                arguments=raw.get("arguments"),
                call_id=raw.get("call_id") or raw.get("id"),
                output=output,
                content=content,
            )
        text = parse_node(raw.get("text"))
        if output is not None:
            return OutputContainer(output=output, text=text, content=content)
        return ContentContainer(content=content, text=text)
    # numbers and booleans carry no text or calls
    return None


def collect_tool_calls(node: Optional[Node]) -> List[ToolCallNode]:
    """Depth-first list of every tool call node, in encounter order."""
    if node is None or isinstance(node, TextLeaf):
        return []
    if isinstance(node, NodeList):
        found: List[ToolCallNode] = []
        for item in node.items:
            found.extend(collect_tool_calls(item))
        return found
    if isinstance(node, ToolCallNode):
        return [node, *collect_tool_calls(node.output), *collect_tool_calls(node.content)]
    if isinstance(node, OutputContainer):
        return [*collect_tool_calls(node.output), *collect_tool_calls(node.content)]
    return collect_tool_calls(node.content)


def flatten_text(node: Optional[Node]) -> str:
    """Concatenate text leaves, visiting ``text`` then ``content`` then ``output``."""
    if node is None or isinstance(node, ToolCallNode):
        return ""
    if isinstance(node, TextLeaf):
        return node.text
    if isinstance(node, NodeList):
        return "".join(flatten_text(item) for item in node.items)
    if isinstance(node, OutputContainer):
        return flatten_text(node.text) + flatten_text(node.content) + flatten_text(node.output)
    return flatten_text(node.text) + flatten_text(node.content)


def assistant_text(raw: Any) -> str:
    """First non-empty text found at the known top-level locations."""
    if not isinstance(raw, dict):
        return flatten_text(parse_node(raw)).strip()
    for key in TEXT_PRIORITY:
        candidate = flatten_text(parse_node(raw.get(key))).strip()
        if candidate:
            return candidate
    return ""


def tool_calls(raw: Any) -> List[ToolCall]:
    """Decode every tool call in the response; undecodable arguments are skipped."""
    calls: List[ToolCall] = []
    for node in collect_tool_calls(parse_node(raw)):
        arguments = node.arguments
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                LOGGER.warning("completion.tool_arguments_invalid", tool=node.name)
                continue
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            LOGGER.warning("completion.tool_arguments_invalid", tool=node.name)
            continue
        calls.append(ToolCall(name=node.name, arguments=arguments, call_id=node.call_id))
    return calls
