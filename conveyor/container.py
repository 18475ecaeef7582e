"""Dotted-path configuration containers and their transformer pipeline."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Mapping, Tuple

from .errors import ConfigError, ContainerLockedError
from .sequential import run_in_sequence

_MISSING = object()

_REGEX_LITERAL = re.compile(r"^/(?P<body>.+)/(?P<flags>[imsx]*)$", re.DOTALL)
_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


class Container:
    """Hierarchical configuration snapshot addressed with dotted paths.

    A container is mutable until ``lock()`` is called. Components lock their
    own container once ``prepare_config`` has finished transforming it.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(dict(data or {}))
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> "Container":
        self._locked = True
        return self

    def get(self, path: str, default: Any = None) -> Any:
        value = self._lookup(path)
        return default if value is _MISSING else value

    def has(self, path: str) -> bool:
        return self._lookup(path) is not _MISSING

    def set(self, path: str, value: Any) -> "Container":
        if self._locked:
            raise ContainerLockedError(f"Cannot set '{path}' on a locked container")
        parts = _split(path)
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
        return self

    def list_keys(self) -> List[str]:
        return list(self._data.keys())

    def section(self, key: str, default: Any = None) -> Any:
        """Return the top-level entry ``key`` verbatim; dots in ``key`` are not paths."""
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def dump(self) -> str:
        """Return one ``path: value`` line per leaf, in insertion order."""
        return "\n".join(f"{path}: {_format(value)}" for path, value in _walk(self._data, ""))

    def _lookup(self, path: str) -> Any:
        node: Any = self._data
        for part in _split(path):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def __repr__(self) -> str:
        return f"Container(keys={self.list_keys()!r}, locked={self._locked})"


Transformer = Callable[[Any], Awaitable[Any]]


@dataclass
class TransformStep:
    path: str
    transformer: Transformer
    default: Any = None


class ContainerTransformer:
    """Ordered list of (path, async mapping) pairs applied to one container."""

    def __init__(self, container: Container) -> None:
        self.container = container
        self._steps: List[TransformStep] = []

    def add(self, path: str, transformer: Transformer, default: Any = None) -> "ContainerTransformer":
        self._steps.append(TransformStep(path=path, transformer=transformer, default=default))
        return self

    def add_pattern(self, path: str) -> "ContainerTransformer":
        """Compile a pattern list (``/regex/flags`` literals or plain strings)."""

        async def _compile(value: Any) -> List[Any]:
            return compile_patterns(value)

        return self.add(path, _compile, default=[])

    def add_path(self, path: str, base_dir: str | Path) -> "ContainerTransformer":
        """Resolve a relative filesystem path against ``base_dir``."""

        async def _resolve(value: Any) -> Any:
            if value is None:
                return None
            candidate = Path(str(value)).expanduser()
            if candidate.is_absolute():
                return str(candidate)
            return str(Path(base_dir) / candidate)

        return self.add(path, _resolve)

    async def transform(self) -> Container:
        steps = [self._bind(step) for step in self._steps]
        await run_in_sequence(steps, self.container)
        return self.container.lock()

    def _bind(self, step: TransformStep) -> Callable[[Container], Awaitable[Container]]:
        async def _apply(container: Container) -> Container:
            current = container.get(step.path, step.default)
            try:
                value = await step.transformer(current)
            except ConfigError:
                raise
            except Exception as exc:
                raise ConfigError(f"Failed to transform '{step.path}': {exc}") from exc
            container.set(step.path, value)
            return container

        return _apply


def compile_patterns(value: Any) -> List[Any]:
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    return [compile_pattern(item) for item in items]


def compile_pattern(value: Any) -> Any:
    """Turn ``/body/flags`` strings into regexes; leave other values untouched."""
    if not isinstance(value, str):
        return value
    match = _REGEX_LITERAL.match(value)
    if match is None:
        return value
    flags = 0
    for flag in match.group("flags"):
        flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(match.group("body"), flags)
    except re.error as exc:
        raise ConfigError(f"Invalid pattern {value!r}: {exc}") from exc


def _split(path: str) -> List[str]:
    parts = [part for part in path.split(".") if part]
    if not parts:
        raise ConfigError("Container path must not be empty")
    return parts


def _walk(node: Mapping[str, Any], prefix: str) -> Iterator[Tuple[str, Any]]:
    for key, value in node.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            yield from _walk(value, path)
        else:
            yield path, value


def _format(value: Any) -> str:
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    if isinstance(value, list):
        return "[" + ", ".join(_format(item) for item in value) + "]"
    return repr(value)


__all__ = ["Container", "ContainerTransformer", "compile_pattern", "compile_patterns"]
