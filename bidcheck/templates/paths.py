"""Dotted field paths such as ``imp.0.banner.w`` or ``imp[0].banner.w``."""

import re
from collections.abc import Mapping
from typing import Any

from bidcheck.errors import InvalidFieldPathError

PathToken = str | int

_BRACKET = re.compile(r"\[(\d+)\]")


def parse_path(path: str) -> list[PathToken]:
    """Split *path* into field names (str) and list indices (int).

    Raises:
        InvalidFieldPathError: On an empty path or an empty segment.
    """
    if not path or not path.strip():
        raise InvalidFieldPathError("Field path must not be empty")

    tokens: list[PathToken] = []
    for segment in _BRACKET.sub(r".\1", path).split("."):
        if not segment:
            raise InvalidFieldPathError(f"Empty segment in field path '{path}'")
        tokens.append(int(segment) if segment.isdigit() else segment)
    return tokens


def get_path(target: Any, path: str, default: Any = None) -> Any:
    node = target
    for token in parse_path(path):
        if isinstance(token, int) and isinstance(node, list) and token < len(node):
            node = node[token]
        elif isinstance(token, str) and isinstance(node, Mapping) and token in node:
            node = node[token]
        else:
            return default
    return node


def set_path(target: dict[str, Any], path: str, value: Any) -> None:
    """Assign *value* at *path* inside *target*, creating containers on the way.

    A missing container becomes a list when the next token is an index,
    otherwise a dict. An index equal to the list length appends.

    Raises:
        InvalidFieldPathError: If the path crosses a scalar, indexes past the
            end of a list, or uses a field name on a list.
    """
    tokens = parse_path(path)
    node: Any = target
    for position, token in enumerate(tokens):
        last = position == len(tokens) - 1
        child: Any = value if last else ([] if isinstance(tokens[position + 1], int) else {})

        if isinstance(node, dict):
            key = str(token)
            existing = node.get(key)
            if last or existing is None:
                node[key] = child
            elif not isinstance(existing, (dict, list)):
                raise InvalidFieldPathError(f"Field '{key}' in '{path}' is not a container")
            node = node[key]
        elif isinstance(node, list) and isinstance(token, int):
            if token > len(node):
                raise InvalidFieldPathError(
                    f"Index {token} out of range in '{path}' (length {len(node)})"
                )
            if token == len(node):
                node.append(child)
            elif last or node[token] is None:
                node[token] = child
            elif not isinstance(node[token], (dict, list)):
                raise InvalidFieldPathError(f"Item {token} in '{path}' is not a container")
            node = node[token]
        else:
            raise InvalidFieldPathError(f"Cannot traverse '{token}' in '{path}'")
