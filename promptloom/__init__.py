"""
PromptLoom - render trees of prompt components and collect the inputs they need
"""
from .config import Config
from .core.node import DeferredValueRef, Fragment, TypedNode, fragment, make_node, ref
from .core.errors import (
    CycleError,
    InvalidDefaultError,
    IteratorStateError,
    MissingDefaultError,
    PromptLoomError,
    UnknownComponentError,
)
from .core.types import (
    EnvironmentConfig,
    RenderError,
    RenderResult,
    RequirementDescriptor,
    ValidationResult,
)
from .core.execution import (
    Component,
    ComponentRegistry,
    PromptRenderer,
    create_default_registry,
    function_component,
    render,
    wrap_with_delimiter,
)
from .core.inputs import InputIterator, IteratorState, create_input_iterator, validate_input

__version__ = "0.1.0"

__all__ = [
    'Config',
    'DeferredValueRef',
    'Fragment',
    'TypedNode',
    'fragment',
    'make_node',
    'ref',
    'CycleError',
    'InvalidDefaultError',
    'IteratorStateError',
    'MissingDefaultError',
    'PromptLoomError',
    'UnknownComponentError',
    'EnvironmentConfig',
    'RenderError',
    'RenderResult',
    'RequirementDescriptor',
    'ValidationResult',
    'Component',
    'ComponentRegistry',
    'PromptRenderer',
    'create_default_registry',
    'function_component',
    'render',
    'wrap_with_delimiter',
    'InputIterator',
    'IteratorState',
    'create_input_iterator',
    'validate_input',
]
