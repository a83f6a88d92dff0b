"""
Tests for the renderer: ordering, concurrency, error fallback, warnings,
post actions and delimiters
"""
import asyncio
import time

from promptloom import (
    Component,
    PromptRenderer,
    create_default_registry,
    fragment,
    function_component,
    make_node,
    render,
)
from promptloom.core.execution.nodes import (
    AskText,
    Constraint,
    Format,
    OpenUrl,
    Prompt,
    ReviewFile,
    RunCommand,
    Section,
    Task,
)
from promptloom.core.types import OpenUrlAction, ReviewFileAction, RunCommandAction


def run_render(root, **options):
    return asyncio.run(render(root, **options))


def test_document_order_independent_of_completion_order(delayed):
    """Test that a slow first node still renders before a fast second node"""
    slow = make_node(delayed('Slow', 'first', 0.05), None)
    fast = make_node(delayed('Fast', 'second', 0.01), None)

    result = run_render(fragment("[", slow, "|", fast, "]"))

    assert result.ok
    assert result.text == "[first|second]"


def test_independent_nodes_render_in_parallel(delayed):
    """Test that two independent 50ms resolve steps finish well under 100ms"""
    a = make_node(delayed('A', 'a', 0.05), None)
    b = make_node(delayed('B', 'b', 0.05), None)

    async def run():
        start = time.perf_counter()
        result = await render(fragment(a, b))
        return result, time.perf_counter() - start

    result, elapsed = asyncio.run(run())
    assert result.text == "ab"
    assert elapsed < 0.09


def test_primitives_and_empty_values():
    result = run_render(fragment("n=", 3, " ", 1.5, None, True, False, ["!"]))
    assert result.text == "n=3 1.5!"


def test_trim_option():
    assert run_render(fragment("  hi  ")).text == "hi"
    assert run_render(fragment("  hi  "), trim=False).text == "  hi  "


def test_inputs_feed_ask_nodes():
    node = make_node(AskText, {'name': 'topic'})

    assert run_render(node, inputs={'topic': 'owls'}).text == "owls"
    assert run_render(node).text == "{topic}"
    assert run_render(make_node(AskText, {'name': 'topic', 'default': 'cats'})).text == "cats"


def test_schema_error_falls_back_to_children():
    """Test that an invalid property records an error and renders children only"""
    node = make_node(Section, {'name': 'intro', 'delimiter': 'html'}, "body")

    result = run_render(node)

    assert not result.ok
    assert result.text == "body"
    assert len(result.errors) == 1
    assert result.errors[0].component == 'Section'
    assert result.errors[0].prop == 'delimiter'
    assert result.errors[0].code == 'literal_error'
    assert result.errors[0].received == 'html'


def test_missing_required_property():
    result = run_render(make_node(ReviewFile, None, "kept"))

    assert not result.ok
    assert result.text == "kept"
    assert result.errors[0].code == 'missing'
    assert result.errors[0].prop == 'file'


def test_render_exception_becomes_runtime_error():
    class Exploding(Component):
        def render(self, props, value, context):
            raise ValueError("boom")

    result = run_render(fragment("a ", make_node(Exploding, None, "fallback"), " z"))

    assert not result.ok
    assert result.text == "a fallback z"
    assert result.errors[0].code == 'runtime_error'
    assert "boom" in result.errors[0].message


def test_unknown_component_renders_children():
    result = run_render(make_node('Nope', {'x': 1}, "kid"))

    assert not result.ok
    assert result.text == "kid"
    assert result.errors[0].code == 'unknown_component'
    assert result.errors[0].component == 'Nope'


def test_render_step_may_return_subtree():
    class Wrapper(Component):
        async def render(self, props, value, context):
            await asyncio.sleep(0)
            return ["<", make_node(Task, {'delimiter': 'none'}, props['children']), ">"]

    assert run_render(make_node(Wrapper, None, "inner")).text == "<inner>"


def test_render_receives_resolved_value():
    class Greeting(Component):
        def resolve(self, props, context):
            return props['who'].upper()

        def render(self, props, value, context):
            return f"Hello, {value}!"

    assert run_render(make_node(Greeting, {'who': 'ada'})).text == "Hello, ADA!"


def test_function_component():
    @function_component
    def Shout(props, context):
        return str(props.get('text', '')).upper()

    assert Shout.component_name() == 'Shout'
    assert run_render(make_node(Shout, {'text': 'hey'})).text == "HEY"


def test_missing_task_warning_keeps_result_ok():
    """Test that warnings are reported without failing the render"""
    result = run_render(make_node(Prompt, {'name': 'p'}, "just text"))

    assert result.ok
    assert result.text == "just text"
    assert [error.code for error in result.errors] == ['warn_missing_task']


def test_ignore_warnings():
    result = run_render(make_node(Prompt, {'name': 'p'}, "x"), ignore_warnings=['warn_missing_task'])

    assert result.ok
    assert result.errors is None


def test_throw_on_warnings_promotes_to_failure():
    result = run_render(make_node(Prompt, {'name': 'p'}, "x"), throw_on_warnings=True)

    assert not result.ok
    assert result.text == "x"
    assert result.errors[0].code == 'warn_missing_task'


def test_ignored_warnings_are_not_promoted():
    result = run_render(
        make_node(Prompt, {'name': 'p'}, "x"),
        throw_on_warnings=True,
        ignore_warnings=['warn_missing_task'],
    )
    assert result.ok


def test_legacy_validation_warning_code():
    class Legacy(Component):
        def render(self, props, value, context):
            context.record_error('Legacy', "old-style warning", 'validation_warning')
            return "ok"

    result = run_render(make_node(Legacy, None))
    assert result.ok
    assert result.errors[0].code == 'validation_warning'


def test_bare_prompt_skips_checks():
    result = run_render(make_node(Prompt, {'bare': True}, "x"))
    assert result.ok
    assert result.errors is None


def test_post_actions_collected():
    tree = make_node(
        Prompt, {'bare': True},
        "Fix it",
        make_node(ReviewFile, {'file': 'src/app.py', 'editor': 'vim'}),
        make_node(OpenUrl, {'url': 'https://example.com'}),
        make_node(RunCommand, {'command': 'pytest', 'cwd': '/tmp'}),
    )

    result = run_render(tree)

    assert result.text == "Fix it"
    # Sibling nodes render concurrently, so actions arrive in completion order
    assert sorted(result.post_actions, key=lambda action: action.type) == [
        OpenUrlAction(url='https://example.com'),
        ReviewFileAction(file='src/app.py', editor='vim'),
        RunCommandAction(command='pytest', cwd='/tmp'),
    ]


def test_xml_delimiter_from_environment():
    result = run_render(make_node(Section, {'name': 'intro'}, "Hello"), env={'output': {'format': 'xml'}})
    assert result.text == "<intro>\nHello\n</intro>"


def test_markdown_delimiter_from_environment():
    result = run_render(make_node(Section, {'name': 'intro'}, "Hello"), env={'output': {'format': 'markdown'}})
    assert result.text == "## intro\n\nHello"


def test_non_structural_format_means_no_delimiter():
    result = run_render(make_node(Task, None, "Do it"), env={'output': {'format': 'text'}})
    assert result.text == "Do it"


def test_delimiter_is_inherited_by_subtree():
    """Test that a delimiter property applies to every node below it"""
    tree = make_node(
        Prompt, {'bare': True, 'delimiter': 'markdown'},
        make_node(Task, None, "Summarize"),
        make_node(Section, {'name': 'notes', 'delimiter': 'none'}, make_node(Task, None, "inner")),
    )

    result = run_render(tree)

    assert result.text == "## task\n\nSummarize\n\ninner"


def test_constraint_and_format_content():
    constraint = make_node(Constraint, {'type': 'must-not', 'delimiter': 'none'}, "share secrets")
    assert run_render(constraint).text == "MUST NOT: share secrets"

    fmt = make_node(Format, {'type': 'json', 'strict': True, 'delimiter': 'none'}, "A list of names")
    assert run_render(fmt).text == (
        "Output format: json\nA list of names\n"
        "Return only the formatted output with no additional commentary."
    )


def test_prompt_role_shorthand():
    tree = make_node(
        Prompt, {'role': 'a careful reviewer', 'delimiter': 'none'},
        make_node(Task, None, "Review the diff"),
    )
    result = run_render(tree)

    assert result.ok
    assert result.text == "a careful reviewer\nReview the diff"


def test_renderer_with_custom_registry():
    class Banner(Component):
        def render(self, props, value, context):
            return f"== {props.get('title')} =="

    renderer = PromptRenderer()
    registry = create_default_registry().create_child()
    registry.register(Banner)

    result = asyncio.run(renderer.render(make_node('Banner', {'title': 'Hi'}), registry=registry))
    assert result.text == "== Hi =="

    # The default registry does not know the custom component
    assert not run_render(make_node('Banner', {'title': 'Hi'})).ok
