"""
Built-in components
"""
from .actions import ACTION_COMPONENTS, OpenUrl, ReviewFile, RunCommand
from .ask import (
    ASK_COMPONENTS,
    AskArray,
    AskBase,
    AskConfirm,
    AskDate,
    AskFile,
    AskLabel,
    AskMultiSelect,
    AskNumber,
    AskObject,
    AskOption,
    AskPath,
    AskRating,
    AskSecret,
    AskSelect,
    AskText,
)
from .control import CONTROL_COMPONENTS, ForEach, If
from .runtime import RUNTIME_COMPONENTS, UUID, Cwd, DateTime, Hostname, Timestamp, Username
from .structural import STRUCTURAL_COMPONENTS, Constraint, Context, Format, Prompt, Role, Section, Task

BUILTIN_COMPONENTS = [
    *STRUCTURAL_COMPONENTS,
    *CONTROL_COMPONENTS,
    *ASK_COMPONENTS,
    *RUNTIME_COMPONENTS,
    *ACTION_COMPONENTS,
]

__all__ = [
    'BUILTIN_COMPONENTS',
    'AskBase', 'AskText', 'AskNumber', 'AskConfirm', 'AskSecret', 'AskDate',
    'AskSelect', 'AskMultiSelect', 'AskOption', 'AskRating', 'AskLabel',
    'AskFile', 'AskPath', 'AskObject', 'AskArray',
    'If', 'ForEach',
    'Prompt', 'Section', 'Role', 'Task', 'Context', 'Constraint', 'Format',
    'UUID', 'Timestamp', 'DateTime', 'Hostname', 'Username', 'Cwd',
    'ReviewFile', 'OpenUrl', 'RunCommand',
]
