"""
Control Nodes
Conditional and repeated rendering
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..node_base import Component
from ...context import RenderContext


class IfProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    # omitted means no condition
    when: Any = True
    provider: Optional[Union[str, List[str]]] = None
    not_provider: Optional[Union[str, List[str]]] = None


def _as_list(value: Union[str, List[str]]) -> List[str]:
    return [value] if isinstance(value, str) else list(value)


class If(Component):
    """
    Render children only when every given condition holds

    Properties:
        when: Bool, any value (truthiness) or callable(inputs) -> bool.
              A reference to an Ask node gates on that input's answer.
        provider: Provider name or list of names the prompt must target
        not_provider: Provider name or list of names the prompt must not target

    Conditions are re-evaluated on every pass, so inputs shown under an If
    appear or disappear as earlier answers change.
    """

    schema = IfProps

    def render(self, props: Dict[str, Any], value: Any, context: RenderContext) -> Any:
        if not self.evaluate(props.get('when', True), context):
            return None

        if props.get('provider') is not None and context.provider not in _as_list(props['provider']):
            return None
        if props.get('not_provider') is not None and context.provider in _as_list(props['not_provider']):
            return None
        return props['children']

    @staticmethod
    def evaluate(condition: Any, context: RenderContext) -> bool:
        if callable(condition):
            return bool(condition(dict(context.inputs)))
        return bool(condition)


class ForEachProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    items: List[Any]
    each: Optional[Any] = None


class ForEach(Component):
    """
    Repeat content for each item

    Properties:
        items: Sequence to iterate
        each: Optional callable(item, index) returning the node(s) for one item;
              without it the children are repeated once per item
    """

    schema = ForEachProps

    def render(self, props: Dict[str, Any], value: Any, context: RenderContext) -> List[Any]:
        each = props.get('each')
        output = []
        for index, item in enumerate(props['items']):
            if callable(each):
                output.append(each(item, index))
            else:
                output.append(props['children'])
        return output


CONTROL_COMPONENTS = [If, ForEach]
