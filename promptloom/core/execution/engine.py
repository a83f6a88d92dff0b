"""
Render engine for PromptLoom
Turns a node tree into the final prompt text
"""
import asyncio
import time
from typing import Any, Iterable, List, Mapping, Optional, Union

from .node_base import call_step
from .node_registry import ComponentRegistry, create_default_registry
from .resolution import NodeResolution, ResolutionScheduler
from ..context import PassMode, RenderContext, create_environment
from ..errors import CycleError
from ..node import DeferredValueRef, Fragment, TypedNode, follow_path, iter_typed_nodes
from ..types import DELIMITERS, EnvironmentConfig, RenderError, RenderResult, is_warning_code
from ...utils.logger import get_logger

logger = get_logger(__name__)


def stringify(value: Any) -> str:
    """Text form of a computed value (None renders as nothing)"""
    if value is None or isinstance(value, bool):
        return ''
    return str(value)


def seed_input_defaults(root: Any, context: RenderContext) -> None:
    """
    Place input defaults into context.inputs before a pass

    Input nodes whose name the caller did not supply contribute their literal
    `default` property, or their component's implicit default. Conditions
    evaluated anywhere in the tree then see the same values the inputs report.
    """
    for node in iter_typed_nodes(root):
        component_class = context.registry.lookup(node.kind)
        if component_class is None or not component_class.collects_input:
            continue
        name = node.properties.get('name')
        if not isinstance(name, str) or name in context.inputs:
            continue
        default = node.properties.get('default')
        if default is not None and not isinstance(default, (TypedNode, DeferredValueRef)):
            context.inputs[name] = default
        elif component_class.has_implicit_default():
            context.inputs[name] = component_class.implicit_default


class TreeWalker:
    """
    Shared depth-first traversal over a node tree

    Subclasses decide what a typed node contributes; children of lists and
    fragments are visited concurrently and their results kept in document order.
    """

    def __init__(self, scheduler: ResolutionScheduler):
        self.scheduler = scheduler

    async def visit(self, node: Any, context: RenderContext) -> List[Any]:
        if node is None or isinstance(node, bool):
            return []
        if isinstance(node, (list, tuple)):
            return await self.visit_sequence(node, context)
        if isinstance(node, Fragment):
            return await self.visit_sequence(node.children, context)
        if isinstance(node, DeferredValueRef):
            return await self.visit_reference(node, context)
        if isinstance(node, TypedNode):
            return await self.visit_typed(node, context)
        return self.visit_primitive(node, context)

    async def visit_sequence(self, nodes: Iterable[Any], context: RenderContext) -> List[Any]:
        results = await asyncio.gather(*(self.visit(child, context) for child in nodes))
        return [item for result in results for item in result]

    async def visit_typed(self, node: TypedNode, context: RenderContext) -> List[Any]:
        resolution = await self.scheduler.resolution(node)
        if not resolution.ok:
            return await self.visit_sequence(node.children, context)

        node_context = self.scope_for(resolution, context)
        found = self.on_resolved(resolution, node_context)

        if not resolution.has_render:
            return found + self.value_output(resolution)

        try:
            output = await call_step(resolution.component.render, resolution.props, resolution.value, node_context)
        except CycleError:
            raise
        except Exception as e:
            return found + await self.on_render_error(resolution, e, node_context)
        # inputs created by the render step
        seed_input_defaults(output, node_context)
        return found + await self.visit(output, node_context)

    async def visit_reference(self, reference: DeferredValueRef, context: RenderContext) -> List[Any]:
        return []

    def visit_primitive(self, node: Any, context: RenderContext) -> List[Any]:
        return []

    def on_resolved(self, resolution: NodeResolution, context: RenderContext) -> List[Any]:
        return []

    def value_output(self, resolution: NodeResolution) -> List[Any]:
        return []

    async def on_render_error(self, resolution: NodeResolution, error: Exception, context: RenderContext) -> List[Any]:
        return await self.visit_sequence(resolution.node.children, context)

    @staticmethod
    def scope_for(resolution: NodeResolution, context: RenderContext) -> RenderContext:
        """A node with a `delimiter` property sets the inherited delimiter for its subtree"""
        delimiter = resolution.props.get('delimiter')
        if isinstance(delimiter, str) and delimiter in DELIMITERS:
            return context.scoped(delimiter)
        return context


class TextRenderer(TreeWalker):
    """Walker for the output-producing pass: every visit yields text chunks"""

    async def visit_reference(self, reference: DeferredValueRef, context: RenderContext) -> List[str]:
        value = follow_path(await self.scheduler.resolve(reference.node), reference.path)
        return [stringify(value)]

    def visit_primitive(self, node: Any, context: RenderContext) -> List[str]:
        return [stringify(node)]

    def value_output(self, resolution: NodeResolution) -> List[str]:
        return [stringify(resolution.value)]

    async def on_render_error(self, resolution: NodeResolution, error: Exception, context: RenderContext) -> List[str]:
        name = resolution.component.component_name()
        context.record_error(name, f"Runtime error in {name}: {error}", 'runtime_error')
        logger.warning(f"Render step of {resolution.node!r} failed: {error}")
        return await self.visit_sequence(resolution.node.children, context)


class PromptRenderer:
    """
    Renders node trees to prompt text

    Features:
    - Fresh scheduler and context per call (no state shared between passes)
    - Concurrent resolution of independent branches
    - Output in document order regardless of completion order
    - Warning filtering/promotion on the final error list
    """

    def __init__(self, registry: Optional[ComponentRegistry] = None):
        """
        Initialize renderer

        Args:
            registry: Component registry for string kinds (default: built-ins)
        """
        self.registry = registry

    async def render(
        self,
        root: Any,
        inputs: Optional[Mapping[str, Any]] = None,
        env: Optional[Union[EnvironmentConfig, Mapping[str, Any]]] = None,
        trim: bool = True,
        throw_on_warnings: bool = False,
        ignore_warnings: Optional[Iterable[str]] = None,
        registry: Optional[ComponentRegistry] = None
    ) -> RenderResult:
        """
        Render a node tree

        Args:
            root: Root node
            inputs: name -> value map fed to input nodes instead of placeholders
            env: Environment/provider configuration (partial dicts are merged over defaults)
            trim: Strip surrounding whitespace from the final text
            throw_on_warnings: Promote warnings to failure
            ignore_warnings: Warning codes to drop entirely
            registry: Registry override for this call

        Returns:
            RenderResult (ok=False when a non-warning error was recorded)

        Raises:
            CycleError: If node references form a cycle
        """
        start_time = time.time()
        context = RenderContext(
            registry=registry or self.registry or create_default_registry(),
            env=create_environment(env),
            inputs=dict(inputs or {}),
            mode=PassMode.RENDER,
        )
        seed_input_defaults(root, context)

        scheduler = ResolutionScheduler(context)
        chunks = await TextRenderer(scheduler).visit(root, context)
        text = ''.join(chunks)
        if trim:
            text = text.strip()

        result = self._build_result(text, context, throw_on_warnings, set(ignore_warnings or ()))
        logger.debug(
            f"Render {'succeeded' if result.ok else 'failed'} in {time.time() - start_time:.3f}s "
            f"({scheduler.resolve_steps_run} resolve steps, {len(context.errors)} recorded errors)"
        )
        return result

    @staticmethod
    def _build_result(
        text: str,
        context: RenderContext,
        throw_on_warnings: bool,
        ignored: set
    ) -> RenderResult:
        warnings: List[RenderError] = []
        hard_errors: List[RenderError] = []
        for error in context.errors:
            if is_warning_code(error.code):
                if error.code in ignored:
                    continue
                if throw_on_warnings:
                    hard_errors.append(error)
                else:
                    warnings.append(error)
            else:
                hard_errors.append(error)

        if hard_errors:
            return RenderResult(ok=False, text=text, errors=hard_errors + warnings, post_actions=list(context.post_actions))
        return RenderResult(ok=True, text=text, errors=warnings or None, post_actions=list(context.post_actions))


async def render(root: Any, **options: Any) -> RenderResult:
    """
    Render a node tree with a one-off PromptRenderer

    Accepts the keyword options of PromptRenderer.render.
    """
    return await PromptRenderer().render(root, **options)
