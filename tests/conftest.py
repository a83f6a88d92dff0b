"""
Shared fixtures for PromptLoom tests
"""
import asyncio

import pytest

from promptloom import Component


@pytest.fixture
def resolve_calls():
    """Names of delayed components in the order their resolve steps started"""
    return []


@pytest.fixture
def delayed(resolve_calls):
    """Factory for components that sleep `delay` seconds, then resolve to `value`"""
    def factory(name, value, delay=0.0):
        async def resolve(self, props, context):
            resolve_calls.append(name)
            await asyncio.sleep(delay)
            return value

        return type(name, (Component,), {'name': name, 'resolve': resolve})

    return factory


class Echo(Component):
    """Resolves to its `value` property (after reference substitution)"""

    def resolve(self, props, context):
        return props.get('value')


class AddOne(Component):
    async def resolve(self, props, context):
        await asyncio.sleep(0.005)
        return props['value'] + 1


@pytest.fixture
def echo():
    return Echo


@pytest.fixture
def add_one():
    return AddOne
