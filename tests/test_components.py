"""
Tests for the built-in components
"""
import asyncio
import time

from promptloom import fragment, make_node, render
from promptloom.core.execution.nodes import (
    UUID,
    AskArray,
    AskConfirm,
    AskDate,
    AskFile,
    AskLabel,
    AskMultiSelect,
    AskNumber,
    AskObject,
    AskOption,
    AskPath,
    AskRating,
    AskSecret,
    AskSelect,
    AskText,
    Cwd,
    DateTime,
    ForEach,
    Hostname,
    If,
    Timestamp,
    Username,
)
from promptloom.core.inputs import create_input_iterator


def text_of(root, **options):
    result = asyncio.run(render(root, **options))
    return result.text


def first_requirement(root):
    iterator = create_input_iterator(root)
    asyncio.run(iterator.start())
    return iterator.current()


# ============================================================================
# Ask components
# ============================================================================

def test_ask_number_renders_whole_numbers_cleanly():
    node = make_node(AskNumber, {'name': 'n', 'min': 0, 'max': 10})

    assert text_of(node, inputs={'n': 4}) == "4"
    assert text_of(node, inputs={'n': 2.5}) == "2.5"
    assert text_of(make_node(AskNumber, {'name': 'n', 'default': 7})) == "7"

    requirement = first_requirement(node)
    assert requirement.type == 'number'
    assert requirement.min == 0
    assert requirement.max == 10


def test_ask_confirm_implicit_default():
    node = make_node(AskConfirm, {'name': 'ok'})

    assert text_of(node) == "No"
    assert text_of(node, inputs={'ok': True}) == "Yes"
    assert first_requirement(node).default is False


def test_silent_input_renders_nothing():
    node = make_node(AskText, {'name': 'secret_note', 'silent': True})

    assert text_of(fragment("a", node, "b"), inputs={'secret_note': 'hidden'}) == "ab"
    assert first_requirement(node).name == 'secret_note'


def test_ask_select_options_from_children_and_property():
    """Test that option children come first and their text is rendered"""
    node = make_node(
        AskSelect, {'name': 'lang', 'options': [{'value': 'go', 'label': 'Go'}, 'rust']},
        make_node(AskOption, {'value': 'py'}, "Python 3"),
        make_node(AskOption, {'value': 'js', 'label': 'JavaScript'}),
    )

    requirement = first_requirement(node)
    assert [option.value for option in requirement.options] == ['py', 'js', 'go', 'rust']
    assert [option.label for option in requirement.options] == ['Python 3', 'JavaScript', 'Go', 'rust']

    assert text_of(node, inputs={'lang': 'py'}) == "Python 3"
    assert text_of(node, inputs={'lang': 'js'}) == "JavaScript"
    assert text_of(node, inputs={'lang': 'other'}) == "other"
    assert text_of(node) == "{lang}"


def test_option_mappings_without_label_and_bad_items():
    node = make_node(AskSelect, {'name': 'size', 'options': [{'value': 'xl'}, {'value': 2, 'text': 'Two'}]})

    requirement = first_requirement(node)
    assert [option.label for option in requirement.options] == ['xl', 2]
    assert text_of(node, inputs={'size': 2}) == "Two"

    result = asyncio.run(render(make_node(AskSelect, {'name': 'size', 'options': [1, 2]})))
    assert not result.ok
    assert {error.prop for error in result.errors} == {'options'}


def test_ask_multiselect_joins_option_text():
    node = make_node(
        AskMultiSelect, {'name': 'tools', 'min': 1},
        make_node(AskOption, {'value': 'a'}, "Alpha"),
        make_node(AskOption, {'value': 'b'}, "Beta"),
    )

    assert text_of(node, inputs={'tools': ['a', 'b']}) == "Alpha, Beta"
    requirement = first_requirement(node)
    assert requirement.type == 'multiselect'
    assert requirement.min == 1


def test_ask_rating_labels():
    node = make_node(
        AskRating, {'name': 'urgency', 'labels': {5: 'critical'}},
        make_node(AskLabel, {'value': 1}, "low"),
        make_node(AskLabel, {'value': 5}, "very high"),
    )

    requirement = first_requirement(node)
    assert requirement.type == 'rating'
    assert requirement.min == 1
    assert requirement.max == 5
    assert requirement.labels == {1: 'low', 5: 'critical'}

    assert text_of(node, inputs={'urgency': 1}) == "1 (low)"
    assert text_of(node, inputs={'urgency': 5}) == "5 (critical)"
    assert text_of(node, inputs={'urgency': 3}) == "3"


def test_ask_date_requirement_fields():
    node = make_node(AskDate, {'name': 'due', 'min_date': 'today'})

    requirement = first_requirement(node)
    assert requirement.type == 'date'
    assert requirement.min_date == 'today'
    assert text_of(node, inputs={'due': '2030-01-01'}) == "2030-01-01"


def test_ask_secret_is_masked():
    requirement = first_requirement(make_node(AskSecret, {'name': 'token'}))
    assert requirement.type == 'secret'
    assert requirement.masked is True


def test_ask_file_and_path_requirements():
    file_req = first_requirement(make_node(AskFile, {'name': 'src', 'extensions': ['.py'], 'must_exist': True}))
    assert file_req.type == 'file'
    assert file_req.extensions == ['.py']
    assert file_req.must_exist is True

    path_req = first_requirement(make_node(AskPath, {'name': 'dir', 'must_be_directory': True}))
    assert path_req.type == 'path'
    assert path_req.must_be_directory is True

    multi = make_node(AskFile, {'name': 'files', 'multiple': True})
    assert text_of(multi, inputs={'files': ['a.py', 'b.py']}) == "a.py, b.py"


def test_ask_object_and_array_rendering():
    assert text_of(make_node(AskObject, {'name': 'cfg'}), inputs={'cfg': {'a': 1}}) == '{\n  "a": 1\n}'
    assert text_of(make_node(AskArray, {'name': 'items'}), inputs={'items': ['x', 'y']}) == "x, y"
    assert text_of(make_node(AskArray, {'name': 'items'}), inputs={'items': [{'k': 1}]}) == '[{"k": 1}]'


def test_ask_without_name_is_a_schema_error():
    result = asyncio.run(render(make_node(AskText, {'label': 'Nameless'})))

    assert not result.ok
    assert result.errors[0].prop == 'name'
    assert result.errors[0].code == 'missing'


# ============================================================================
# Control components
# ============================================================================

def test_if_when_values():
    assert text_of(make_node(If, {'when': True}, "shown")) == "shown"
    assert text_of(make_node(If, {'when': False}, "hidden")) == ""
    assert text_of(make_node(If, {'when': None}, "hidden")) == ""
    assert text_of(make_node(If, None, "unconditional")) == "unconditional"


def test_if_callable_sees_inputs_and_defaults():
    tree = fragment(
        make_node(AskText, {'name': 'mode', 'default': 'fast', 'silent': True}),
        make_node(If, {'when': lambda inputs: inputs.get('mode') == 'fast'}, "speedy"),
    )

    assert text_of(tree) == "speedy"
    assert text_of(tree, inputs={'mode': 'slow'}) == ""


def test_if_provider_conditions():
    node = make_node(If, {'provider': ['openai', 'google']}, "tuned")
    negated = make_node(If, {'not_provider': 'anthropic'}, "not claude")

    assert text_of(node, env={'llm': {'provider': 'openai'}}) == "tuned"
    assert text_of(node, env={'llm': {'provider': 'anthropic'}}) == ""
    assert text_of(negated, env={'llm': {'provider': 'anthropic'}}) == ""
    assert text_of(negated, env={'llm': {'provider': 'openai'}}) == "not claude"


def test_if_gated_on_referenced_input():
    confirm = make_node(AskConfirm, {'name': 'extra', 'silent': True})
    tree = fragment(confirm, make_node(If, {'when': confirm}, "extra section"))

    assert text_of(tree) == ""
    assert text_of(tree, inputs={'extra': True}) == "extra section"


def test_for_each_repeats_children():
    assert text_of(make_node(ForEach, {'items': [1, 2, 3]}, "*")) == "***"


def test_for_each_with_callable():
    node = make_node(ForEach, {'items': ['a', 'b'], 'each': lambda item, index: f"{index}:{item};"})
    assert text_of(node) == "0:a;1:b;"


def test_for_each_output_inputs_are_seeded():
    """Test that defaults of inputs created by a render step are visible to conditions"""
    def each(item, index):
        return [
            make_node(AskText, {'name': f'pick{index}', 'default': item, 'silent': True}),
            make_node(If, {'when': lambda inputs: inputs.get(f'pick{index}') == 'b'}, f"chosen{index}"),
        ]

    node = make_node(ForEach, {'items': ['a', 'b'], 'each': each})

    assert text_of(node) == "chosen1"
    assert text_of(node, inputs={'pick0': 'b'}) == "chosen0chosen1"


def test_for_each_over_resolved_items(delayed):
    source = make_node(delayed('Names', ['ann', 'bo'], 0.01), None)
    node = make_node(ForEach, {'items': source, 'each': lambda item, index: [item.upper(), " "]})

    assert text_of(node) == "ANN BO"


# ============================================================================
# Runtime values
# ============================================================================

def test_runtime_values_come_from_environment_snapshot():
    env = {'runtime': {
        'hostname': 'build-box',
        'username': 'ci',
        'cwd': '/work',
        'timestamp': 1700000000000,
        'uuid': 'fixed-uuid',
        'date': '2023-11-14',
        'time': '22:13:20',
    }}

    assert text_of(make_node(Hostname, None), env=env) == "build-box"
    assert text_of(make_node(Username, None), env=env) == "ci"
    assert text_of(make_node(Cwd, None), env=env) == "/work"
    assert text_of(make_node(Timestamp, None), env=env) == "1700000000000"
    assert text_of(make_node(UUID, None), env=env) == "fixed-uuid"
    assert text_of(make_node(DateTime, None), env=env) == "2023-11-14 22:13:20"
    assert text_of(make_node(DateTime, {'format': '%Y'}), env=env) == "2023"


def test_formatted_datetime_is_utc(monkeypatch):
    """Test that a formatted DateTime agrees with the snapshot date whatever the local zone"""
    env = {'runtime': {'timestamp': 86400000, 'date': '1970-01-02', 'time': '00:00:00'}}
    monkeypatch.setenv('TZ', 'America/New_York')
    if hasattr(time, 'tzset'):
        time.tzset()
    try:
        formatted = text_of(make_node(DateTime, {'format': '%Y-%m-%d %H:%M:%S'}), env=env)
    finally:
        monkeypatch.undo()
        if hasattr(time, 'tzset'):
            time.tzset()

    assert formatted == "1970-01-02 00:00:00"
    assert text_of(make_node(DateTime, None), env=env) == "1970-01-02 00:00:00"


def test_runtime_snapshot_is_taken_per_pass():
    first = text_of(make_node(UUID, None))
    second = text_of(make_node(UUID, None))

    assert first
    assert first != second
