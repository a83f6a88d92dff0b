"""
Exception types for PromptLoom

Node-level failures during a pass are recorded as RenderError entries, not raised.
The exceptions here are the conditions that abort an operation outright.
"""
from typing import Iterable, List


class PromptLoomError(Exception):
    """Base exception for all PromptLoom errors"""
    pass


class CycleError(PromptLoomError, ValueError):
    """Raised when value references between nodes form a cycle"""

    def __init__(self, node_names: Iterable[str]):
        self.node_names: List[str] = list(node_names)
        super().__init__(
            f"Reference cycle detected between nodes: {', '.join(self.node_names)}"
        )


class IteratorStateError(PromptLoomError, RuntimeError):
    """Raised when an input iterator method is called in the wrong state"""
    pass


class MissingDefaultError(PromptLoomError):
    """Raised in non-interactive mode when a required input has no default"""

    def __init__(self, input_name: str):
        self.input_name = input_name
        super().__init__(
            f"Non-interactive mode: Required input \"{input_name}\" has no default value. "
            "Either provide a default, pre-supply a value, or use on_missing_default='skip'."
        )


class InvalidDefaultError(PromptLoomError):
    """Raised in non-interactive mode when a default value fails validation"""

    def __init__(self, input_name: str, messages: Iterable[str]):
        self.input_name = input_name
        self.messages = list(messages)
        super().__init__(
            f"Non-interactive mode: Validation failed for \"{input_name}\": {'; '.join(self.messages)}"
        )


class UnknownComponentError(PromptLoomError, KeyError):
    """Raised when a component name is not present in a registry"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown component '{name}'")

    def __str__(self) -> str:
        return self.args[0]
