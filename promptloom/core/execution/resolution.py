"""
Resolution scheduler for the prompt engine

Computes, for one pass, the value of every node that declares a resolve step:
- each node is resolved at most once (single-flight: concurrent requests for a
  node in flight await the same task),
- a node's references are resolved before the node itself,
- independent references are resolved concurrently,
- reference cycles are rejected before anything in them runs.
"""
import asyncio
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Type

from .node_base import Component, call_step, validate_props
from ..context import RenderContext
from ..errors import CycleError
from ..node import DeferredValueRef, TypedNode, contains_references, follow_path, node_dependencies
from ...utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class NodeResolution:
    """Memoized outcome of resolving one node in one pass"""
    node: TypedNode
    component: Optional[Component]
    props: Dict[str, Any] = field(default_factory=dict)
    value: Any = None
    ok: bool = True

    @property
    def has_render(self) -> bool:
        return self.component is not None and self.component.render is not None


class ResolutionScheduler:
    """
    Per-pass resolver with memoization

    Features:
    - Topological cycle check over the static reference graph
    - Concurrent resolution of independent references
    - Single-flight memoization keyed by node identity
    - Node-local failures recorded on the context, never raised
    """

    def __init__(self, context: RenderContext):
        """
        Initialize scheduler

        Args:
            context: Render context for this pass (errors are recorded here)
        """
        self.context = context
        self._resolved: Dict[TypedNode, NodeResolution] = {}
        self._in_flight: Dict[TypedNode, asyncio.Task] = {}
        self._acyclic: Set[TypedNode] = set()
        self.resolve_steps_run = 0

    async def resolve(self, node: TypedNode) -> Any:
        """
        Get the computed value of a node

        Args:
            node: Node to resolve

        Returns:
            The value of its resolve step, or None when it has none or failed
        """
        resolution = await self.resolution(node)
        return resolution.value

    async def resolution(self, node: TypedNode) -> NodeResolution:
        """
        Get the full memoized resolution (substituted props, value, status) of a node

        Raises:
            CycleError: If the node's references form a cycle
        """
        resolved = self._resolved.get(node)
        if resolved is not None:
            return resolved

        task = self._in_flight.get(node)
        if task is None:
            self.check_acyclic(node)
            task = asyncio.ensure_future(self._resolve_node(node))
            self._in_flight[node] = task
        try:
            return await task
        finally:
            if task.done():
                self._in_flight.pop(node, None)

    def check_acyclic(self, root: TypedNode) -> None:
        """
        Verify the reference graph reachable from `root` has no cycle

        Uses Kahn's algorithm over the nodes reachable through property
        references. Nodes already verified in this pass are skipped.

        Raises:
            CycleError: Naming the nodes that could not be ordered
        """
        if root in self._acyclic:
            return

        # dependencies[node] = nodes whose values `node` needs
        dependencies: Dict[TypedNode, List[TypedNode]] = {}
        stack = [root]
        while stack:
            node = stack.pop()
            if node in dependencies:
                continue
            deps = [dep for dep in node_dependencies(node) if dep not in self._acyclic]
            dependencies[node] = deps
            stack.extend(deps)

        in_degree: Dict[TypedNode, int] = {node: len(deps) for node, deps in dependencies.items()}
        dependents: Dict[TypedNode, List[TypedNode]] = defaultdict(list)
        for node, deps in dependencies.items():
            for dep in deps:
                dependents[dep].append(node)

        queue = deque(node for node, degree in in_degree.items() if degree == 0)
        ordered: List[TypedNode] = []
        while queue:
            node = queue.popleft()
            ordered.append(node)
            for dependent in dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(ordered) != len(dependencies):
            ordered_set = set(ordered)
            remaining = {node for node in dependencies if node not in ordered_set}
            # Drop nodes that only lead into a cycle without being part of one
            pruned = True
            while pruned:
                pruned = False
                for node in list(remaining):
                    if not any(node in dependencies[other] for other in remaining):
                        remaining.discard(node)
                        pruned = True
            cycle_nodes = [node for node in dependencies if node in remaining]
            raise CycleError(repr(node) for node in cycle_nodes)

        self._acyclic.update(ordered)

    async def resolve_properties(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Substitute every reference in a property mapping, resolving independent ones concurrently"""
        keys = list(properties.keys())
        values = await asyncio.gather(*(self.resolve_value(properties[key]) for key in keys))
        return dict(zip(keys, values))

    async def resolve_value(self, value: Any) -> Any:
        """Substitute references inside one property value"""
        if isinstance(value, TypedNode):
            return await self.resolve(value)
        if isinstance(value, DeferredValueRef):
            target = await self.resolve(value.node)
            return follow_path(target, value.path)
        if not contains_references(value):
            return value
        if isinstance(value, (list, tuple)):
            items = await asyncio.gather(*(self.resolve_value(item) for item in value))
            return tuple(items) if isinstance(value, tuple) else list(items)
        if isinstance(value, dict) or hasattr(value, 'items'):
            keys = list(value.keys())
            items = await asyncio.gather(*(self.resolve_value(value[key]) for key in keys))
            return dict(zip(keys, items))
        return value

    async def _resolve_node(self, node: TypedNode) -> NodeResolution:
        component_class: Optional[Type[Component]] = self.context.registry.lookup(node.kind)
        if component_class is None:
            message = (
                f"Unknown component type \"{node.name}\". "
                "Register it in the registry or pass the component class."
            )
            self.context.record_error(node.name, message, 'unknown_component')
            logger.warning(message)
            return self._store(NodeResolution(node, None, dict(node.properties), ok=False))

        name = component_class.component_name()
        component = component_class()

        props = await self.resolve_properties(dict(node.properties))

        if component_class.schema is not None:
            validated, errors = validate_props(name, props, component_class.schema)
            if errors:
                self.context.errors.extend(errors)
                logger.warning(f"Node {node!r} failed property validation: {'; '.join(e.message for e in errors)}")
                return self._store(NodeResolution(node, component, {**props, 'children': node.children}, ok=False))
            props = validated

        props['children'] = node.children
        resolution = NodeResolution(node, component, props)

        if component.resolve is not None:
            try:
                self.resolve_steps_run += 1
                resolution.value = await call_step(component.resolve, props, self.context)
                logger.debug(f"Resolved {node!r}")
            except CycleError:
                raise
            except Exception as e:
                self.context.record_error(name, f"Runtime error in {name}: {e}", 'runtime_error')
                logger.warning(f"Resolve step of {node!r} failed: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
                resolution.value = None
                resolution.ok = False

        return self._store(resolution)

    def _store(self, resolution: NodeResolution) -> NodeResolution:
        self._resolved[resolution.node] = resolution
        return resolution
