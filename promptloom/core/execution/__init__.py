"""
Execution Engine for PromptLoom
Resolves node values and renders node trees to text
"""
from .engine import PromptRenderer, render
from .node_base import Component, function_component, wrap_with_delimiter
from .node_registry import ComponentRegistry, create_default_registry
from .resolution import NodeResolution, ResolutionScheduler
from ..errors import CycleError

__all__ = [
    'PromptRenderer',
    'render',
    'CycleError',
    'Component',
    'function_component',
    'wrap_with_delimiter',
    'ComponentRegistry',
    'create_default_registry',
    'NodeResolution',
    'ResolutionScheduler',
]
