"""
Render context for PromptLoom passes

A RenderContext is created fresh for every render or input-collection pass and
discarded when the pass completes. It accumulates inputs, errors, warnings and
post-render actions; nodes themselves are never mutated.
"""
import dataclasses
import getpass
import os
import socket
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING, Union

from .types import (
    DELIMITERS,
    EnvironmentConfig,
    PostAction,
    RenderError,
)
from ..config import Config

if TYPE_CHECKING:
    from .execution.node_registry import ComponentRegistry


class PassMode(Enum):
    """
    What a pass is for

    RENDER: produce the final text
    COLLECT: walk the tree to discover input requirements (restricted mode:
             input nodes report collected-or-default values, output is discarded)
    """
    RENDER = "render"
    COLLECT = "collect"


def create_runtime_config() -> Dict[str, Any]:
    """Snapshot of the runtime environment taken at the start of a pass"""
    now = datetime.now(timezone.utc)
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        username = "anonymous"
    return {
        "hostname": socket.gethostname(),
        "username": username,
        "cwd": os.getcwd(),
        "timestamp": int(time.time() * 1000),
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H:%M:%S"),
        "uuid": str(uuid.uuid4()),
    }


def _deep_merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def create_environment(
    overrides: Optional[Union[EnvironmentConfig, Mapping[str, Any]]] = None,
    with_runtime: bool = True
) -> EnvironmentConfig:
    """
    Build an EnvironmentConfig from Config defaults plus caller overrides

    Args:
        overrides: Full EnvironmentConfig or a partial dict deep-merged over the defaults
        with_runtime: Attach a fresh runtime snapshot

    Returns:
        EnvironmentConfig for one pass
    """
    if isinstance(overrides, EnvironmentConfig):
        overrides = overrides.model_dump(exclude_unset=True)
    data = _deep_merge(Config.environment_defaults(), overrides or {})
    if with_runtime:
        data["runtime"] = {**create_runtime_config(), **(data.get("runtime") or {})}
    return EnvironmentConfig.model_validate(data)


@dataclass
class RenderContext:
    """Per-pass mutable accumulator passed to every resolve and render step"""
    registry: 'ComponentRegistry'
    env: EnvironmentConfig = field(default_factory=create_environment)
    inputs: Dict[str, Any] = field(default_factory=dict)
    mode: PassMode = PassMode.RENDER
    errors: List[RenderError] = field(default_factory=list)
    post_actions: List[PostAction] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    # Inherited structural format for the subtree being rendered
    delimiter: str = ""

    def __post_init__(self):
        if not self.delimiter:
            fmt = self.env.output.format
            self.delimiter = fmt if fmt in DELIMITERS else "none"

    @property
    def provider(self) -> str:
        return self.env.llm.provider

    @property
    def collecting(self) -> bool:
        return self.mode is PassMode.COLLECT

    def record_error(
        self,
        component: str,
        message: str,
        code: str,
        prop: Optional[str] = None,
        path: Optional[List[Any]] = None,
        received: Any = None,
        expected: Optional[str] = None
    ) -> RenderError:
        """Record a node-level error or warning"""
        error = RenderError(
            component=component,
            prop=prop,
            message=message,
            code=code,
            path=list(path or []),
            received=received,
            expected=expected,
        )
        self.errors.append(error)
        return error

    def warn(self, component: str, message: str, code: str) -> RenderError:
        """Record a warning (code must carry the warn_ prefix)"""
        if not code.startswith("warn_"):
            code = f"warn_{code}"
        return self.record_error(component, message, code)

    def add_post_action(self, action: PostAction) -> None:
        self.post_actions.append(action)

    def scoped(self, delimiter: Optional[str] = None) -> "RenderContext":
        """
        Context view for a subtree

        Shares every accumulator with this context; only the inherited
        delimiter differs.
        """
        if delimiter is None or delimiter == self.delimiter:
            return self
        return dataclasses.replace(self, delimiter=delimiter)
