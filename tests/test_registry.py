"""
Tests for the component registry
"""
import pytest

from promptloom import Component, ComponentRegistry, UnknownComponentError, create_default_registry
from promptloom.core.execution.nodes import BUILTIN_COMPONENTS, AskText, Section


class Banner(Component):
    def render(self, props, value, context):
        return "banner"


def test_default_registry_holds_builtins():
    registry = create_default_registry()

    for component_class in BUILTIN_COMPONENTS:
        assert registry.get(component_class.component_name()) is component_class
    assert 'AskText' in registry
    assert 'Section' in registry.names()


def test_default_registries_are_independent():
    """Test that registering in one default registry does not touch another"""
    first = create_default_registry()
    second = create_default_registry()

    first.register(Banner)

    assert first.has('Banner')
    assert not second.has('Banner')


def test_child_registry_falls_back_to_parent():
    parent = ComponentRegistry()
    parent.register(Section)
    child = parent.create_child()
    child.register(Banner)

    assert child.get('Section') is Section
    assert child.get('Banner') is Banner
    assert parent.get('Banner') is None
    assert child.names() == ['Banner', 'Section']


def test_register_under_alias_and_as_decorator():
    registry = ComponentRegistry()
    registry.register(AskText, name='Question')

    @registry.register
    class Footer(Component):
        pass

    assert registry.get('Question') is AskText
    assert registry.get('Footer') is Footer
    assert Footer.component_name() == 'Footer'


def test_require_unknown_component():
    registry = ComponentRegistry()

    with pytest.raises(UnknownComponentError) as exc_info:
        registry.require('Missing')
    assert isinstance(exc_info.value, KeyError)
    assert str(exc_info.value) == "Unknown component 'Missing'"


def test_register_rejects_non_components():
    with pytest.raises(TypeError):
        ComponentRegistry().register(object)


def test_lookup_accepts_classes_and_names():
    registry = create_default_registry()

    assert registry.lookup('Section') is Section
    assert registry.lookup(Banner) is Banner
    assert registry.lookup('Banner') is None
    assert registry.lookup(42) is None
