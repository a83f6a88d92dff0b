"""
Structural Nodes
Sections of a prompt, wrapped in the inherited delimiter
"""
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict

from ..node_base import Component, wrap_with_delimiter
from ...context import RenderContext
from ...node import Fragment, TypedNode, make_node


class StructuralProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    delimiter: Optional[Literal["xml", "markdown", "none"]] = None


class StructuralComponent(Component):
    """
    A component whose children are wrapped as one named block

    The block uses the node's own `delimiter` property when given, otherwise
    the delimiter inherited from enclosing nodes (env.output.format at the root).
    """

    schema = StructuralProps
    tag = "section"

    def render(self, props: Dict[str, Any], value: Any, context: RenderContext) -> Any:
        return wrap_with_delimiter(self.content(props), self.tag_for(props), context=context)

    def tag_for(self, props: Dict[str, Any]) -> str:
        return self.tag

    def content(self, props: Dict[str, Any]) -> Any:
        return props['children']


class SectionProps(StructuralProps):
    name: Optional[str] = None


class Section(StructuralComponent):
    """Generic named block (`name` becomes the tag/heading)"""
    schema = SectionProps

    def tag_for(self, props):
        return props.get('name') or self.tag


class Role(StructuralComponent):
    """Who the model should act as"""
    tag = "role"


class Task(StructuralComponent):
    """What the model should do"""
    tag = "task"


class Context(StructuralComponent):
    """Background information"""
    tag = "context"


class ConstraintProps(StructuralProps):
    type: Literal["must", "should", "must-not"] = "must"


class Constraint(StructuralComponent):
    """
    A rule the response has to follow

    Properties:
        type: "must", "should" or "must-not" (prefixes the rule text)
    """
    schema = ConstraintProps
    tag = "constraint"

    PREFIXES = {"must": "MUST: ", "should": "SHOULD: ", "must-not": "MUST NOT: "}

    def content(self, props):
        return [self.PREFIXES[props['type']], props['children']]


class FormatProps(StructuralProps):
    type: Optional[str] = None
    strict: bool = False


class Format(StructuralComponent):
    """
    Expected response format

    Properties:
        type: Format name (json, markdown, code, ...)
        strict: Ask for the formatted output only
    """
    schema = FormatProps
    tag = "format"

    def content(self, props):
        content = []
        if props.get('type'):
            content.append(f"Output format: {props['type']}\n")
        content.append(props['children'])
        if props.get('strict'):
            content.append("\nReturn only the formatted output with no additional commentary.")
        return content


class PromptProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    bare: bool = False
    role: Optional[str] = None
    delimiter: Optional[Literal["xml", "markdown", "none"]] = None


def has_child_of_kind(children: Any, kind: str) -> bool:
    for child in children or ():
        if isinstance(child, TypedNode) and child.name == kind:
            return True
        if isinstance(child, Fragment) and has_child_of_kind(child.children, kind):
            return True
        if isinstance(child, (list, tuple)) and has_child_of_kind(child, kind):
            return True
    return False


class Prompt(Component):
    """
    Root of a prompt

    Properties:
        name: Prompt identifier
        bare: Render children exactly as given (no role shorthand, no checks)
        role: Shorthand for a leading Role block when no Role child exists

    A non-bare prompt without a Task child records a warn_missing_task warning.
    """

    schema = PromptProps

    def render(self, props: Dict[str, Any], value: Any, context: RenderContext) -> Any:
        children = props['children']
        if props.get('bare'):
            return children

        if not has_child_of_kind(children, 'Task'):
            context.warn('Prompt', "Prompt has no Task child; the model may not know what to do", 'missing_task')

        if props.get('role') and not has_child_of_kind(children, 'Role'):
            return [make_node(Role, None, props['role']), "\n", children]
        return children


STRUCTURAL_COMPONENTS = [Prompt, Section, Role, Task, Context, Constraint, Format]
