"""
Node model for PromptLoom

A prompt is an immutable tree of:
- primitives (str, int, float, bool, None) rendered as-is,
- Fragment: an ordered run of children with no identity of its own,
- TypedNode: a component kind, a property mapping and ordered children.

Identity is reference identity: two structurally equal TypedNodes are distinct
for memoization. A property may point at another node's computed value with a
TypedNode (whole value) or a DeferredValueRef (value, then a property path).
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Sequence, Tuple, Type, Union, TYPE_CHECKING

from .types import PathKey

if TYPE_CHECKING:
    from .execution.node_base import Component

Primitive = Union[str, int, float, bool, None]
ComponentKind = Union[str, Type["Component"]]


@dataclass(frozen=True, eq=False)
class Fragment:
    """Ordered children spliced into the parent's output"""
    children: Tuple["Node", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'children', normalize_children(self.children))


@dataclass(frozen=True, eq=False)
class TypedNode:
    """A component instance in the tree"""
    kind: ComponentKind
    properties: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'properties', MappingProxyType(dict(self.properties or {})))
        object.__setattr__(self, 'children', normalize_children(self.children))

    @property
    def name(self) -> str:
        return kind_name(self.kind)

    def __repr__(self) -> str:
        return f"<TypedNode {self.name} at {id(self):#x}>"


@dataclass(frozen=True)
class DeferredValueRef:
    """Use `node`'s computed value, then walk `path` into it"""
    node: TypedNode
    path: Tuple[PathKey, ...] = ()

    def __post_init__(self):
        if not isinstance(self.node, TypedNode):
            raise TypeError(f"DeferredValueRef must point at a TypedNode, got {type(self.node).__name__}")
        object.__setattr__(self, 'path', tuple(self.path))

    def __getitem__(self, key: PathKey) -> "DeferredValueRef":
        return DeferredValueRef(self.node, self.path + (key,))


Node = Union[Primitive, Fragment, TypedNode, DeferredValueRef]


def kind_name(kind: ComponentKind) -> str:
    """Human-readable name for a node kind"""
    if isinstance(kind, str):
        return kind
    name = getattr(kind, 'name', None)
    if isinstance(name, str) and name:
        return name
    return getattr(kind, '__name__', repr(kind))


def normalize_children(children: Any) -> Tuple["Node", ...]:
    """Flatten nested lists/tuples of children into a tuple (Fragments are kept)"""
    if children is None:
        return ()
    if not isinstance(children, (list, tuple)):
        return (children,)
    flat = []
    for child in children:
        if isinstance(child, (list, tuple)):
            flat.extend(normalize_children(child))
        else:
            flat.append(child)
    return tuple(flat)


def make_node(kind: ComponentKind, properties: Mapping[str, Any] = None, *children: Any) -> TypedNode:
    """
    Build a typed node

    Args:
        kind: Component class or registry name
        properties: Property mapping (values may be literals, TypedNodes or DeferredValueRefs)
        *children: Child nodes; lists are flattened

    Returns:
        Immutable TypedNode
    """
    return TypedNode(kind=kind, properties=properties or {}, children=normalize_children(children))


def fragment(*children: Any) -> Fragment:
    """Build a fragment from children"""
    return Fragment(children=normalize_children(children))


def ref(node: TypedNode, *path: PathKey) -> DeferredValueRef:
    """Reference `node`'s computed value, optionally via a property path"""
    return DeferredValueRef(node, tuple(path))


def is_reference(value: Any) -> bool:
    """True when a property value defers to another node's computed value"""
    return isinstance(value, (TypedNode, DeferredValueRef))


def as_reference(value: Any) -> DeferredValueRef:
    if isinstance(value, DeferredValueRef):
        return value
    return DeferredValueRef(value)


def iter_references(value: Any) -> Iterator[DeferredValueRef]:
    """Yield every reference in a property value, descending into lists, tuples and dicts"""
    if is_reference(value):
        yield as_reference(value)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_references(item)
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from iter_references(item)


def contains_references(value: Any) -> bool:
    return next(iter_references(value), None) is not None


def node_dependencies(node: TypedNode) -> Tuple[TypedNode, ...]:
    """Nodes whose computed values `node`'s properties depend on (in property order, no duplicates)"""
    seen = []
    for value in node.properties.values():
        for reference in iter_references(value):
            if not any(reference.node is existing for existing in seen):
                seen.append(reference.node)
    return tuple(seen)


def follow_path(value: Any, path: Sequence[PathKey]) -> Any:
    """
    Walk a property path into a value

    Mappings are indexed by key, sequences by integer index and other objects
    by attribute. A missing step yields None.
    """
    current = value
    for key in path:
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple)) and not isinstance(current, str):
            if isinstance(key, int) and -len(current) <= key < len(current):
                current = current[key]
            else:
                return None
        elif isinstance(key, str):
            current = getattr(current, key, None)
        else:
            return None
    return current


def iter_typed_nodes(node: Any) -> Iterable[TypedNode]:
    """Depth-first iteration over TypedNodes reachable through children (not properties)"""
    if isinstance(node, TypedNode):
        yield node
        for child in node.children:
            yield from iter_typed_nodes(child)
    elif isinstance(node, Fragment):
        for child in node.children:
            yield from iter_typed_nodes(child)
    elif isinstance(node, (list, tuple)):
        for child in node:
            yield from iter_typed_nodes(child)
