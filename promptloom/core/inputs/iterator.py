"""
Input iterator for PromptLoom

Walks a node tree to find the inputs it still needs and collects them one at
a time. The requirement list is a projection of the tree under the values
collected so far, so it is recomputed after every answer: an If gated on an
earlier answer can reveal or hide later inputs.
"""
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from .validation import FilesystemCapability, default_filesystem, validate_input
from ..context import PassMode, RenderContext, create_environment
from ..errors import InvalidDefaultError, IteratorStateError, MissingDefaultError
from ..execution.engine import TreeWalker, seed_input_defaults
from ..execution.node_registry import ComponentRegistry, create_default_registry
from ..execution.resolution import NodeResolution, ResolutionScheduler
from ..types import EnvironmentConfig, InputValues, OnMissingDefault, RenderError, RequirementDescriptor, ValidationResult
from ...utils.logger import get_logger

logger = get_logger(__name__)

_LOCAL_FILESYSTEM = object()


class IteratorState(str, Enum):
    """
    NOT_STARTED -> ITERATING <-> SUBMITTED -> DONE
    ITERATING -> DONE directly when nothing is left to ask
    """
    NOT_STARTED = "NOT_STARTED"
    ITERATING = "ITERATING"
    SUBMITTED = "SUBMITTED"
    DONE = "DONE"


class RequirementWalker(TreeWalker):
    """Walker for the collection pass: every visit yields RequirementDescriptors"""

    def on_resolved(self, resolution: NodeResolution, context: RenderContext) -> List[RequirementDescriptor]:
        if not resolution.component.collects_input:
            return []
        name = resolution.component.component_name()
        try:
            requirement = resolution.component.requirement(resolution.props, context)
        except Exception as e:
            context.record_error(name, f"Runtime error in {name}: {e}", 'runtime_error')
            logger.warning(f"Requirement of {resolution.node!r} failed: {e}")
            return []
        return [requirement] if requirement is not None else []


class InputIterator:
    """
    Step-by-step input collection over a node tree

    Features:
    - Requirements discovered by a collection pass over the same scheduler
      the renderer uses (defaults computed by resolve steps are honoured)
    - Re-walk after every answer so conditional inputs appear/disappear
    - Validation of submitted values (optional)
    - Non-interactive fill from defaults
    """

    def __init__(
        self,
        root: Any,
        validate_on_submit: bool = True,
        values: Optional[Mapping[str, Any]] = None,
        non_interactive: bool = False,
        on_missing_default: OnMissingDefault = "error",
        filesystem: Any = _LOCAL_FILESYSTEM,
        env: Optional[Union[EnvironmentConfig, Mapping[str, Any]]] = None,
        registry: Optional[ComponentRegistry] = None
    ):
        """
        Initialize iterator

        Args:
            root: Root node
            validate_on_submit: Validate values given to submit()
            values: Pre-supplied values; those inputs are never asked
            non_interactive: start() fills every input from defaults and finishes
            on_missing_default: 'error' to raise for a required input with no
                default during non-interactive fill, 'skip' to leave it unset
            filesystem: Capability for existence checks (default: local disk when
                Config.FILESYSTEM_CHECKS, None for none)
            env: Environment/provider configuration for collection passes
            registry: Component registry (default: built-ins)
        """
        if on_missing_default not in ("error", "skip"):
            raise ValueError(f"on_missing_default must be 'error' or 'skip', got {on_missing_default!r}")
        self.root = root
        self.validate_on_submit = validate_on_submit
        self.non_interactive = non_interactive
        self.on_missing_default = on_missing_default
        self.filesystem: Optional[FilesystemCapability] = (
            default_filesystem() if filesystem is _LOCAL_FILESYSTEM else filesystem
        )
        self.env = env
        self.registry = registry or create_default_registry()

        self.state = IteratorState.NOT_STARTED
        self._values: InputValues = dict(values or {})
        self._requirements: List[RequirementDescriptor] = []
        self._cursor = 0
        self.errors: List[RenderError] = []

    # ------------------------------------------------------------------
    # Collection pass
    # ------------------------------------------------------------------

    async def collect_requirements(self) -> List[RequirementDescriptor]:
        """
        Walk the tree under the current values

        Node-level errors of the pass (bad properties, failing steps) are kept
        in `errors` rather than raised.

        Returns:
            Requirements in document order, first occurrence of each name only
        """
        context = RenderContext(
            registry=self.registry,
            env=create_environment(self.env),
            inputs=dict(self._values),
            mode=PassMode.COLLECT,
        )
        seed_input_defaults(self.root, context)
        scheduler = ResolutionScheduler(context)
        found = await RequirementWalker(scheduler).visit(self.root, context)
        self.errors = list(context.errors)

        requirements: List[RequirementDescriptor] = []
        seen = set()
        for requirement in found:
            if requirement.name in seen:
                continue
            seen.add(requirement.name)
            requirements.append(requirement)
        logger.debug(f"Collection pass found {len(requirements)} requirements ({len(context.errors)} node errors)")
        return requirements

    def _next_unfilled(self, start: int = 0) -> int:
        for index in range(start, len(self._requirements)):
            if self._requirements[index].name not in self._values:
                return index
        return len(self._requirements)

    def _move_to_next(self) -> None:
        self._cursor = self._next_unfilled()
        self._set_state(IteratorState.ITERATING if self._cursor < len(self._requirements) else IteratorState.DONE)

    def _set_state(self, state: IteratorState) -> None:
        if state is not self.state:
            logger.debug(f"Input iterator {self.state.value} -> {state.value}")
        self.state = state

    def _require_started(self) -> None:
        if self.state is IteratorState.NOT_STARTED:
            raise IteratorStateError("Iterator not started. Call start() first.")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Discover outstanding requirements

        Raises:
            IteratorStateError: If already started
            CycleError: If node references form a cycle
        """
        if self.state is not IteratorState.NOT_STARTED:
            raise IteratorStateError("Iterator already started.")

        if self.non_interactive:
            await self._fill_defaults()
            self._set_state(IteratorState.DONE)
            return

        self._requirements = await self.collect_requirements()
        self._move_to_next()

    def current(self) -> Optional[RequirementDescriptor]:
        """Requirement at the cursor, or None when done"""
        self._require_started()
        if self.state is IteratorState.DONE:
            return None
        return self._requirements[self._cursor]

    async def submit(self, value: Any) -> ValidationResult:
        """
        Answer the current requirement

        An invalid value is not recorded and the iterator stays on the same
        requirement in the state it was in: ITERATING after a first attempt,
        SUBMITTED (keeping the earlier accepted answer) when a valid value was
        already submitted for it.

        Raises:
            IteratorStateError: If not started or already done
        """
        self._require_started()
        if self.state is IteratorState.DONE:
            raise IteratorStateError("Iterator is done. No current requirement.")

        requirement = self._requirements[self._cursor]
        if self.validate_on_submit:
            result = await validate_input(requirement, value, self.filesystem)
            if not result.valid:
                return result
        else:
            result = ValidationResult(valid=True)

        self._values[requirement.name] = value
        self._set_state(IteratorState.SUBMITTED)
        return result

    async def advance(self) -> None:
        """
        Move past the submitted requirement

        Re-walks the tree with the values collected so far and moves to the
        first requirement that still has no value.

        Raises:
            IteratorStateError: Unless the current requirement was submitted
        """
        self._require_started()
        if self.state is IteratorState.ITERATING:
            raise IteratorStateError("Current requirement not submitted. Call submit() first.")
        if self.state is IteratorState.DONE:
            raise IteratorStateError("Iterator is done. Nothing to advance.")

        self._requirements = await self.collect_requirements()
        self._move_to_next()

    def is_done(self) -> bool:
        return self.state is IteratorState.DONE

    def get_values(self) -> InputValues:
        """Copy of the values collected (and pre-supplied) so far"""
        return dict(self._values)

    async def run_non_interactive(self) -> InputValues:
        """
        Fill every outstanding input from its default and finish

        Returns:
            Copy of all values

        Raises:
            MissingDefaultError: Required input without default (on_missing_default='error')
            InvalidDefaultError: A default failed validation
        """
        await self._fill_defaults()
        self._set_state(IteratorState.DONE)
        return self.get_values()

    async def _fill_defaults(self) -> None:
        # one requirement per pass: a filled default can reveal further inputs
        handled = set(self._values)
        while True:
            self._requirements = await self.collect_requirements()
            pending = next((r for r in self._requirements if r.name not in handled), None)
            if pending is None:
                return
            handled.add(pending.name)

            if not pending.has_default():
                if pending.required and self.on_missing_default == "error":
                    raise MissingDefaultError(pending.name)
                logger.debug(f"No default for '{pending.name}', leaving it unset")
                continue

            result = await validate_input(pending, pending.default, self.filesystem)
            if not result.valid:
                raise InvalidDefaultError(pending.name, [error.message for error in result.errors])
            self._values[pending.name] = pending.default


def create_input_iterator(root: Any, **options: Any) -> InputIterator:
    """
    Create an InputIterator for a node tree

    Accepts the keyword options of InputIterator.
    """
    return InputIterator(root, **options)
