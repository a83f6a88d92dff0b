"""
Type definitions for PromptLoom

This module provides:
- Type aliases for common types
- Environment configuration models
- Render result and error models
- Post-render action models
- Input requirement and validation result models (the contract CLIs and UIs build on)
"""
from typing import Any, Dict, List, Literal, Optional, TypeAlias, Union
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Type Aliases
# ============================================================================

PathKey: TypeAlias = Union[str, int]
PropertyPath: TypeAlias = List[PathKey]
InputValues: TypeAlias = Dict[str, Any]
Delimiter: TypeAlias = Literal["xml", "markdown", "none"]
InputType: TypeAlias = Literal[
    "string", "number", "boolean", "select", "multiselect", "date",
    "secret", "file", "path", "rating", "object", "array",
]
OnMissingDefault: TypeAlias = Literal["error", "skip"]

DELIMITERS = ("xml", "markdown", "none")


# ============================================================================
# Environment
# ============================================================================

class LlmConfig(BaseModel):
    """LLM the prompt is rendered for"""
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    provider: str = "anthropic"
    model: str = "claude-3-sonnet"
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


class OutputConfig(BaseModel):
    """Output formatting preferences"""
    model_config = ConfigDict(extra="allow")

    format: Literal["xml", "markdown", "json", "text"] = "xml"
    trim: bool = True
    indent: str = "  "


class CodeConfig(BaseModel):
    """Code-related preferences"""
    model_config = ConfigDict(extra="allow")

    language: str = "python"
    highlight: Optional[bool] = None


class EnvironmentConfig(BaseModel):
    """Environment/provider configuration visible to every node in a pass"""
    model_config = ConfigDict(extra="allow")

    llm: LlmConfig = Field(default_factory=LlmConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    code: CodeConfig = Field(default_factory=CodeConfig)
    runtime: Dict[str, Any] = Field(default_factory=dict, description="Runtime snapshot taken at pass start")


# ============================================================================
# Render errors and results
# ============================================================================

class RenderError(BaseModel):
    """A validation error, runtime error or warning recorded during a pass"""
    component: str = Field(..., description="Component name, e.g. 'Section'")
    prop: Optional[str] = Field(default=None, description="Failing property, or None for runtime/cross-field errors")
    message: str
    code: str = Field(..., description="pydantic error type, 'runtime_error', 'unknown_component' or a warn_* code")
    path: PropertyPath = Field(default_factory=list)
    received: Optional[Any] = None
    expected: Optional[str] = None


def is_warning_code(code: str) -> bool:
    """Warning codes use the 'warn_' prefix; 'validation_warning' is accepted as a legacy alias"""
    return code.startswith("warn_") or code == "validation_warning"


class ReviewFileAction(BaseModel):
    """Open a file for review after the LLM responds"""
    type: Literal["reviewFile"] = "reviewFile"
    file: str
    editor: Optional[str] = None


class OpenUrlAction(BaseModel):
    """Open a URL in a browser"""
    type: Literal["openUrl"] = "openUrl"
    url: str
    browser: Optional[str] = None


class RunCommandAction(BaseModel):
    """Run a shell command"""
    type: Literal["runCommand"] = "runCommand"
    command: str
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None


PostAction: TypeAlias = Union[ReviewFileAction, OpenUrlAction, RunCommandAction]


class RenderResult(BaseModel):
    """
    Result of rendering a node tree

    ok=True: errors, if present, are warnings only.
    ok=False: errors is non-empty and text is best-effort partial output.
    """
    ok: bool
    text: str
    errors: Optional[List[RenderError]] = None
    post_actions: List[PostAction] = Field(default_factory=list)


# ============================================================================
# Input requirements and validation
# ============================================================================

class SelectOption(BaseModel):
    """A choice offered by select/multiselect inputs"""
    value: Any
    label: str
    text: Optional[str] = None


class RequirementDescriptor(BaseModel):
    """One outstanding user input, produced for input nodes while walking a tree"""
    model_config = ConfigDict(extra="allow")

    name: str
    label: str
    description: Optional[str] = None
    type: InputType = "string"
    required: bool = False
    default: Optional[Any] = None
    min: Optional[float] = None
    max: Optional[float] = None
    options: Optional[List[SelectOption]] = None

    # Type-specific fields
    placeholder: Optional[str] = None
    masked: Optional[bool] = None
    labels: Optional[Dict[int, str]] = None
    min_date: Optional[str] = None
    max_date: Optional[str] = None
    extensions: Optional[List[str]] = None
    multiple: Optional[bool] = None
    must_exist: Optional[bool] = None
    must_be_directory: Optional[bool] = None

    def has_default(self) -> bool:
        return self.default is not None


class ValidationIssue(BaseModel):
    """A validation error for one field"""
    field: str
    message: str
    code: str


class ValidationWarning(BaseModel):
    """A non-fatal validation note for one field"""
    field: str
    message: str


class ValidationResult(BaseModel):
    """Outcome of validating one submitted value"""
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)

    @property
    def codes(self) -> List[str]:
        return [error.code for error in self.errors]
