"""
Ask Nodes
Input components: each one reports a RequirementDescriptor while the tree is
walked for inputs, and renders the collected value (or a {name} placeholder)
"""
import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..node_base import Component
from ...context import RenderContext
from ...node import Fragment, TypedNode
from ...types import InputType, RequirementDescriptor, SelectOption


class AskProps(BaseModel):
    """Properties shared by every Ask component"""
    model_config = ConfigDict(extra="allow")

    name: str
    label: Optional[str] = None
    description: Optional[str] = None
    required: bool = False
    default: Optional[Any] = None
    # Report the requirement but render nothing
    silent: bool = False


class AskBase(Component):
    """
    Base class for input components

    Properties:
        name: Input key (unique within a prompt)
        label: Question shown to the user (default: name)
        description: Longer help text (default: label)
        required: Whether a value must be given
        default: Value used when none was collected
        silent: Collect the input without rendering it

    Resolves to the collected value, else the default, else the implicit
    default of the input type, else None.
    """

    schema = AskProps
    collects_input = True
    input_type: InputType = "string"

    def resolve(self, props: Dict[str, Any], context: RenderContext) -> Any:
        value = context.inputs.get(props['name'])
        if value is None:
            value = props.get('default')
        if value is None and self.has_implicit_default():
            value = self.implicit_default
        return value

    def render(self, props: Dict[str, Any], value: Any, context: RenderContext) -> Any:
        if props.get('silent'):
            return None
        if value is None:
            return f"{{{props['name']}}}"
        return self.display(props, value)

    def display(self, props: Dict[str, Any], value: Any) -> str:
        return str(value)

    def requirement(self, props: Dict[str, Any], context: RenderContext) -> RequirementDescriptor:
        label = props.get('label') or props['name']
        default = props.get('default')
        if default is None and self.has_implicit_default():
            default = self.implicit_default
        return RequirementDescriptor(
            name=props['name'],
            label=label,
            description=props.get('description') or label,
            type=self.input_type,
            required=bool(props.get('required')),
            default=default,
            **self.requirement_fields(props),
        )

    def requirement_fields(self, props: Dict[str, Any]) -> Dict[str, Any]:
        """Type-specific descriptor fields"""
        return {}


def child_nodes(children: Any, kind: str) -> List[TypedNode]:
    """Direct TypedNode children (looking through fragments) whose kind is named `kind`"""
    found = []
    for child in children or ():
        if isinstance(child, Fragment):
            found.extend(child_nodes(child.children, kind))
        elif isinstance(child, (list, tuple)):
            found.extend(child_nodes(child, kind))
        elif isinstance(child, TypedNode) and child.name == kind:
            found.append(child)
    return found


def text_of(children: Any) -> Optional[str]:
    """Literal text content of children, or None when there is none"""
    parts = []
    for child in children or ():
        if isinstance(child, (str, int, float)) and not isinstance(child, bool):
            parts.append(str(child))
        elif isinstance(child, Fragment):
            text = text_of(child.children)
            if text:
                parts.append(text)
    text = ''.join(parts).strip()
    return text or None


# ============================================================================
# Scalar inputs
# ============================================================================

class AskText(AskBase):
    """Free text input (`placeholder` is shown as a hint)"""
    input_type = "string"

    def requirement_fields(self, props):
        return {'placeholder': props.get('placeholder')}


class NumberProps(AskProps):
    default: Optional[Union[int, float]] = None
    min: Optional[float] = None
    max: Optional[float] = None


class AskNumber(AskBase):
    """Numeric input bounded by `min`/`max`"""
    schema = NumberProps
    input_type = "number"

    def requirement_fields(self, props):
        return {'min': props.get('min'), 'max': props.get('max')}

    def display(self, props, value):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)


class ConfirmProps(AskProps):
    default: Optional[bool] = None


class AskConfirm(AskBase):
    """Yes/no input; unanswered confirms count as False"""
    schema = ConfirmProps
    input_type = "boolean"
    implicit_default = False

    def display(self, props, value):
        return "Yes" if value else "No"


class AskSecret(AskBase):
    """Masked input (API keys, passwords)"""
    input_type = "secret"

    def requirement_fields(self, props):
        return {'masked': props.get('masked', True)}


class DateProps(AskProps):
    default: Optional[str] = None
    min_date: Optional[str] = None
    max_date: Optional[str] = None
    include_time: bool = False


class AskDate(AskBase):
    """
    Date input in YYYY-MM-DD form

    `min_date`/`max_date` accept a date or the word "today", resolved when the
    value is validated.
    """
    schema = DateProps
    input_type = "date"

    def requirement_fields(self, props):
        return {
            'min_date': props.get('min_date'),
            'max_date': props.get('max_date'),
            'include_time': props.get('include_time'),
        }


# ============================================================================
# Choice inputs
# ============================================================================

class AskOption(Component):
    """
    A choice inside AskSelect/AskMultiSelect

    Properties:
        value: Submitted value
        label: Shown in the picker (default: the option's text, else value)

    The option's children are the text rendered when it is chosen.
    """

    def render(self, props, value, context):
        return text_of(props['children']) or props.get('label') or props.get('value')

    @staticmethod
    def to_option(node: TypedNode) -> SelectOption:
        value = node.properties.get('value', '')
        child_text = text_of(node.children)
        label = node.properties.get('label') or child_text or str(value)
        return SelectOption(value=value, label=label, text=child_text or label)


class OptionSpec(BaseModel):
    """An option given as a mapping; label falls back to the value"""
    value: Any
    label: Optional[str] = None
    text: Optional[str] = None


class ChoiceProps(AskProps):
    options: Optional[List[Union[str, SelectOption, OptionSpec]]] = None


def collect_options(props: Dict[str, Any]) -> List[SelectOption]:
    """Options from AskOption children first, then the `options` property"""
    options = [AskOption.to_option(node) for node in child_nodes(props['children'], 'AskOption')]
    for option in props.get('options') or []:
        if isinstance(option, str):
            option = SelectOption(value=option, label=option)
        elif isinstance(option, OptionSpec):
            option = SelectOption(value=option.value, label=option.label or str(option.value), text=option.text)
        options.append(option)
    return options


def option_text(options: List[SelectOption], value: Any) -> str:
    for option in options:
        if option.value == value:
            return option.text or option.label
    return str(value)


class AskSelect(AskBase):
    """Single choice from a list of options"""
    schema = ChoiceProps
    input_type = "select"

    def requirement_fields(self, props):
        return {'options': collect_options(props)}

    def display(self, props, value):
        return option_text(collect_options(props), value)


class MultiSelectProps(ChoiceProps):
    default: Optional[List[Any]] = None
    min: Optional[int] = None
    max: Optional[int] = None


class AskMultiSelect(AskBase):
    """Any number of choices (bounded by `min`/`max` selections)"""
    schema = MultiSelectProps
    input_type = "multiselect"

    def requirement_fields(self, props):
        return {'options': collect_options(props), 'min': props.get('min'), 'max': props.get('max')}

    def display(self, props, value):
        options = collect_options(props)
        values = value if isinstance(value, (list, tuple)) else [value]
        return ", ".join(option_text(options, item) for item in values)


class AskLabel(Component):
    """
    A label for one AskRating value

    Properties:
        value: Rating value the label describes
    """

    def render(self, props, value, context):
        return text_of(props['children']) or ''


class RatingProps(AskProps):
    default: Optional[Union[int, float]] = None
    min: int = 1
    max: int = 5
    labels: Optional[Dict[int, str]] = None


class AskRating(AskBase):
    """Integer scale input, 1..5 unless `min`/`max` say otherwise"""
    schema = RatingProps
    input_type = "rating"

    def labels(self, props: Dict[str, Any]) -> Dict[int, str]:
        labels: Dict[int, str] = {}
        for node in child_nodes(props['children'], 'AskLabel'):
            try:
                labels[int(node.properties.get('value'))] = text_of(node.children) or ''
            except (TypeError, ValueError):
                continue
        # property labels override child labels
        labels.update(props.get('labels') or {})
        return labels

    def requirement_fields(self, props):
        return {'min': props['min'], 'max': props['max'], 'labels': self.labels(props)}

    def display(self, props, value):
        shown = int(value) if isinstance(value, float) and value.is_integer() else value
        label = self.labels(props).get(shown) if isinstance(shown, int) else None
        if label:
            return f"{shown} ({label})"
        return str(shown)


# ============================================================================
# Filesystem inputs
# ============================================================================

class FileProps(AskProps):
    extensions: Optional[List[str]] = None
    multiple: bool = False
    must_exist: bool = False


class AskFile(AskBase):
    """File path input, optionally restricted to `extensions` and required to exist"""
    schema = FileProps
    input_type = "file"

    def requirement_fields(self, props):
        return {
            'extensions': props.get('extensions'),
            'multiple': props.get('multiple'),
            'must_exist': props.get('must_exist'),
        }

    def display(self, props, value):
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value)
        return str(value)


class PathProps(AskProps):
    must_exist: bool = False
    must_be_directory: bool = False


class AskPath(AskBase):
    """Filesystem path input (file or directory)"""
    schema = PathProps
    input_type = "path"

    def requirement_fields(self, props):
        return {'must_exist': props.get('must_exist'), 'must_be_directory': props.get('must_be_directory')}


# ============================================================================
# Structured inputs
# ============================================================================

class AskObject(AskBase):
    """Mapping input, rendered as JSON"""
    input_type = "object"

    def display(self, props, value):
        return json.dumps(value, indent=2, default=str)


class ArrayProps(AskProps):
    default: Optional[List[Any]] = None
    min: Optional[int] = None
    max: Optional[int] = None
    item_type: Optional[str] = None


class AskArray(AskBase):
    """List input bounded by `min`/`max` items"""
    schema = ArrayProps
    input_type = "array"

    def requirement_fields(self, props):
        return {'min': props.get('min'), 'max': props.get('max'), 'item_type': props.get('item_type')}

    def display(self, props, value):
        if isinstance(value, (list, tuple)) and all(isinstance(item, (str, int, float)) for item in value):
            return ", ".join(str(item) for item in value)
        return json.dumps(value, default=str)


ASK_COMPONENTS = [
    AskText, AskNumber, AskConfirm, AskSecret, AskDate,
    AskSelect, AskMultiSelect, AskOption,
    AskRating, AskLabel,
    AskFile, AskPath,
    AskObject, AskArray,
]
