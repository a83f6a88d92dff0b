"""
Core of PromptLoom: node model, resolution, rendering and input collection
"""
from .node import DeferredValueRef, Fragment, TypedNode, fragment, make_node, ref
from .context import PassMode, RenderContext, create_environment
from .errors import (
    CycleError,
    InvalidDefaultError,
    IteratorStateError,
    MissingDefaultError,
    PromptLoomError,
    UnknownComponentError,
)

__all__ = [
    'DeferredValueRef',
    'Fragment',
    'TypedNode',
    'fragment',
    'make_node',
    'ref',
    'PassMode',
    'RenderContext',
    'create_environment',
    'CycleError',
    'InvalidDefaultError',
    'IteratorStateError',
    'MissingDefaultError',
    'PromptLoomError',
    'UnknownComponentError',
]
