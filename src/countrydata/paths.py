"""Dot-notation access over nested mapping/sequence attribute trees.

Segments are separated by ``.``. Mappings are traversed by key, sequences by
integer index, and a ``*`` segment fans the remaining path out over every
element of the current container. Writes are copy-on-write: only the nodes
along the written path are copied, all other branches stay shared.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, MutableMapping, Sequence

WILDCARD = "*"

PathLike = str | Sequence[str] | None


def split_path(path: PathLike) -> list[str]:
    if path is None:
        return []
    if isinstance(path, str):
        return path.split(".") if path else []
    return [str(segment) for segment in path]


def _resolve_default(default: Any) -> Any:
    return default() if callable(default) else default


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _step(current: Any, segment: str) -> tuple[bool, Any]:
    if isinstance(current, Mapping):
        if segment in current:
            return True, current[segment]
        return False, None
    if _is_sequence(current):
        try:
            index = int(segment)
        except ValueError:
            return False, None
        if -len(current) <= index < len(current):
            return True, current[index]
    return False, None


def get_path(root: Any, path: PathLike, default: Any = None) -> Any:
    """Return the value at ``path`` inside ``root`` or ``default``.

    ``default`` may be a zero-argument callable, evaluated lazily.
    """
    segments = split_path(path)
    if not segments:
        return root

    if isinstance(path, str) and isinstance(root, Mapping) and path in root:
        return root[path]

    current = root
    for position, segment in enumerate(segments):
        if segment == WILDCARD:
            if isinstance(current, Mapping):
                items: Iterable[Any] = list(current.values())
            elif _is_sequence(current):
                items = current
            else:
                return _resolve_default(default)
            remaining = segments[position + 1 :]
            result = pluck(items, remaining, default=default)
            return collapse(result) if WILDCARD in remaining else result

        found, value = _step(current, segment)
        if not found:
            return _resolve_default(default)
        # A plain string at the first segment stands in for the whole branch,
        # e.g. ``name.common`` on a record whose ``name`` is just a string.
        if position == 0 and isinstance(value, str) and len(segments) > 1:
            return value
        current = value

    return current


def pluck(
    items: Iterable[Any],
    path: PathLike,
    key_path: PathLike = None,
    default: Any = None,
) -> Any:
    """Collect ``path`` from every item, optionally keyed by ``key_path``."""
    if key_path is None:
        return [get_path(item, path, default) for item in items]
    keyed: dict[Any, Any] = {}
    for item in items:
        keyed[get_path(item, key_path)] = get_path(item, path, default)
    return keyed


def collapse(items: Iterable[Any]) -> list[Any]:
    """Flatten one level of nesting, dropping non-sequence members."""
    results: list[Any] = []
    for values in items:
        if _is_sequence(values):
            results.extend(values)
    return results


def set_path(root: Any, path: PathLike, value: Any) -> Any:
    """Return a copy of ``root`` with ``value`` written at ``path``.

    ``root`` itself is never mutated. Missing or non-container intermediate
    nodes are replaced with new dicts.
    """
    segments = split_path(path)
    if not segments:
        raise ValueError("Cannot set a value at an empty path")
    if isinstance(path, str) and isinstance(root, Mapping) and path in root:
        copied = dict(root)
        copied[path] = value
        return copied
    if WILDCARD in segments:
        raise ValueError(f"Wildcards are not supported when setting '{path}'")
    return _set_segments(root, segments, value)


def _set_segments(node: Any, segments: list[str], value: Any) -> Any:
    head, rest = segments[0], segments[1:]

    if _is_sequence(node) and _is_index(head, len(node)):
        copied_list = list(node)
        index = int(head)
        copied_list[index] = value if not rest else _set_segments(copied_list[index], rest, value)
        return copied_list

    copied: MutableMapping[str, Any] = dict(node) if isinstance(node, Mapping) else {}
    if rest:
        child = copied.get(head)
        if not isinstance(child, Mapping) and not _is_sequence(child):
            child = {}
        copied[head] = _set_segments(child, rest, value)
    else:
        copied[head] = value
    return copied


def _is_index(segment: str, length: int) -> bool:
    try:
        index = int(segment)
    except ValueError:
        return False
    return -length <= index < length


def has_path(root: Any, path: PathLike) -> bool:
    marker = object()
    return get_path(root, path, marker) is not marker
