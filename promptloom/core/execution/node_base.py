"""
Base component class for the prompt engine
"""
import inspect
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from ..context import RenderContext
from ..node import Fragment
from ..types import DELIMITERS, RenderError, RequirementDescriptor

_MISSING = object()


class Component:
    """
    Base class for all prompt components

    A component may declare:
    - resolve(props, context): compute a value, memoized once per pass and
      available to other nodes through references
    - render(props, value, context): produce output (text or a sub-tree)
    Either step may be a plain method or a coroutine. A component without a
    render step renders its computed value as a string. `props` always carries
    the node's children under "children".
    """

    # Registry name (defaults to the class name)
    name: ClassVar[Optional[str]] = None

    # Optional pydantic model the substituted properties are validated against
    schema: ClassVar[Optional[Type[BaseModel]]] = None

    # Input components report requirements while walking
    collects_input: ClassVar[bool] = False
    implicit_default: ClassVar[Any] = _MISSING

    resolve: ClassVar[Optional[Callable[..., Any]]] = None
    render: ClassVar[Optional[Callable[..., Any]]] = None

    @classmethod
    def component_name(cls) -> str:
        return cls.name or cls.__name__

    @classmethod
    def has_implicit_default(cls) -> bool:
        return cls.implicit_default is not _MISSING

    def requirement(self, props: Dict[str, Any], context: RenderContext) -> Optional[RequirementDescriptor]:
        """
        Describe the input this node needs

        Args:
            props: Substituted, validated properties
            context: Current render context

        Returns:
            RequirementDescriptor for input components, None otherwise
        """
        return None

    @staticmethod
    def has_content(children: Any) -> bool:
        """True when children would render to something"""
        if children is None:
            return False
        if isinstance(children, str):
            return children.strip() != ""
        if isinstance(children, (list, tuple)):
            return any(Component.has_content(child) for child in children)
        if isinstance(children, Fragment):
            return Component.has_content(children.children)
        return True


async def call_step(step: Callable[..., Any], *args: Any) -> Any:
    """Invoke a resolve/render step that may be sync or async"""
    result = step(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def validate_props(
    component_name: str,
    props: Dict[str, Any],
    schema: Type[BaseModel]
) -> Tuple[Optional[Dict[str, Any]], List[RenderError]]:
    """
    Validate properties against a component schema

    Args:
        component_name: Name used in recorded errors
        props: Substituted properties (without children)
        schema: pydantic model class

    Returns:
        (validated properties, []) on success, (None, errors) on failure
    """
    try:
        model = schema.model_validate(props)
    except ValidationError as e:
        errors = []
        for issue in e.errors():
            loc = list(issue.get('loc', ()))
            errors.append(RenderError(
                component=component_name,
                prop=str(loc[0]) if loc else None,
                message=f"{component_name}: {issue.get('msg', 'invalid value')}"
                        + (f" (at {'.'.join(str(part) for part in loc)})" if loc else ""),
                code=issue.get('type', 'validation_error'),
                path=loc,
                received=issue.get('input'),
                expected=_expected_from_issue(issue),
            ))
        return None, errors

    validated = dict(props)
    for key, value in model:
        validated[key] = value
    extras = model.model_extra or {}
    validated.update(extras)
    return validated, []


def _expected_from_issue(issue: Dict[str, Any]) -> Optional[str]:
    ctx = issue.get('ctx') or {}
    if 'expected' in ctx:
        return str(ctx['expected'])
    error_type = issue.get('type', '')
    if error_type.endswith('_type'):
        return error_type[:-len('_type')]
    return None


def function_component(fn: Callable[..., Any] = None, *, name: Optional[str] = None, schema: Optional[Type[BaseModel]] = None):
    """
    Wrap a plain render function `fn(props, context)` as a Component class

    Usable as @function_component or @function_component(name=..., schema=...)
    """
    def wrap(func: Callable[..., Any]) -> Type[Component]:
        def render(self, props, value, context):
            return func(props, context)

        return type(
            func.__name__,
            (Component,),
            {
                'name': name or func.__name__,
                'schema': schema,
                'render': render,
                '__doc__': func.__doc__,
                '__module__': func.__module__,
            },
        )

    if fn is not None:
        return wrap(fn)
    return wrap


def wrap_with_delimiter(content: Any, tag: str, delimiter: Optional[str] = None, context: Optional[RenderContext] = None) -> Any:
    """
    Wrap output in a structural delimiter

    Args:
        content: Node(s) to wrap
        tag: Section tag/heading
        delimiter: "xml", "markdown" or "none"; falls back to the inherited delimiter
        context: Render context supplying the inherited delimiter

    Returns:
        List of nodes (or content unchanged for "none")
    """
    if delimiter is None:
        delimiter = context.delimiter if context is not None else "xml"
    if delimiter not in DELIMITERS:
        delimiter = "xml"

    if delimiter == "xml":
        return [f"<{tag}>\n", content, f"\n</{tag}>\n"]
    if delimiter == "markdown":
        return [f"## {tag}\n\n", content, "\n\n"]
    return content


def is_component_class(value: Any) -> bool:
    return inspect.isclass(value) and issubclass(value, Component)
