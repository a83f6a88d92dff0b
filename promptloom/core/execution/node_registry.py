"""
Component registry for the prompt engine
Maps component names to component classes
"""
from typing import Dict, Iterable, List, Optional, Type, Union

from .node_base import Component, is_component_class
from ..errors import UnknownComponentError
from ...utils.logger import get_logger

logger = get_logger(__name__)


class ComponentRegistry:
    """
    Name -> component class lookup

    Registries are passed explicitly through the RenderContext. A child
    registry links to its parent: lookups fall back to the parent, while
    registrations stay local to the child.
    """

    def __init__(self, parent: Optional['ComponentRegistry'] = None):
        self.parent = parent
        self._components: Dict[str, Type[Component]] = {}

    def register(self, component_class: Type[Component], name: Optional[str] = None) -> Type[Component]:
        """
        Register a component class

        Args:
            component_class: Class extending Component
            name: Registry name (default: the component's own name)

        Returns:
            The registered class (so this can be used as a decorator)
        """
        if not is_component_class(component_class):
            raise TypeError(f"Expected a Component subclass, got {component_class!r}")
        key = name or component_class.component_name()
        if key in self._components and self._components[key] is not component_class:
            logger.debug(f"Overriding component '{key}' in registry")
        self._components[key] = component_class
        return component_class

    def register_all(self, component_classes: Iterable[Type[Component]]) -> None:
        for component_class in component_classes:
            self.register(component_class)

    def get(self, name: str) -> Optional[Type[Component]]:
        """
        Get component class for a given name

        Args:
            name: Registry name

        Returns:
            Component class or None if not found here or in any parent
        """
        if name in self._components:
            return self._components[name]
        if self.parent is not None:
            return self.parent.get(name)
        return None

    def require(self, name: str) -> Type[Component]:
        component_class = self.get(name)
        if component_class is None:
            raise UnknownComponentError(name)
        return component_class

    def lookup(self, kind: Union[str, Type[Component]]) -> Optional[Type[Component]]:
        """Resolve a node kind (class or name) to a component class"""
        if isinstance(kind, str):
            return self.get(kind)
        if is_component_class(kind):
            return kind
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> List[str]:
        inherited = self.parent.names() if self.parent is not None else []
        return sorted(set(inherited) | set(self._components))

    def create_child(self) -> 'ComponentRegistry':
        """Create a scope that inherits this registry's components"""
        return ComponentRegistry(parent=self)

    def __contains__(self, name: str) -> bool:
        return self.has(name)


def create_default_registry() -> ComponentRegistry:
    """Create a fresh registry holding every built-in component"""
    from .nodes import BUILTIN_COMPONENTS

    registry = ComponentRegistry()
    registry.register_all(BUILTIN_COMPONENTS)
    return registry
