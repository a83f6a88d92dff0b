"""
Validation rules for collected inputs

Checks run in a fixed order for every value:
1. Type check for the requirement's type. A mismatch reports INVALID_TYPE and
   skips the remaining checks for that field.
2. Range/membership checks for the type (bounds, options, dates, extensions).
3. Existence checks against a filesystem capability. Without the capability
   they become warnings.
4. REQUIRED for empty or absent values, so a required field given a
   wrong-typed value reports the type error first.
"""
import asyncio
import math
import os
import stat
from datetime import date, datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from ..types import RequirementDescriptor, ValidationIssue, ValidationResult, ValidationWarning
from ...config import Config
from ...utils.logger import get_logger

logger = get_logger(__name__)


class ValidationCode(str, Enum):
    """Error codes reported in ValidationIssue.code"""
    INVALID_TYPE = "INVALID_TYPE"
    REQUIRED = "REQUIRED"
    BELOW_MIN = "BELOW_MIN"
    EXCEEDS_MAX = "EXCEEDS_MAX"
    TOO_SHORT = "TOO_SHORT"
    TOO_LONG = "TOO_LONG"
    INVALID_OPTION = "INVALID_OPTION"
    NOT_INTEGER = "NOT_INTEGER"
    INVALID_DATE = "INVALID_DATE"
    DATE_TOO_EARLY = "DATE_TOO_EARLY"
    DATE_TOO_LATE = "DATE_TOO_LATE"
    INVALID_EXTENSION = "INVALID_EXTENSION"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    NOT_A_DIRECTORY = "NOT_A_DIRECTORY"
    PATH_ACCESS_ERROR = "PATH_ACCESS_ERROR"


# ============================================================================
# Filesystem capability
# ============================================================================

@runtime_checkable
class FilesystemCapability(Protocol):
    """Privileged access needed by existence checks"""

    async def exists(self, path: str) -> bool:
        ...

    async def is_dir(self, path: str) -> bool:
        """Raises OSError when the path exists but cannot be inspected"""
        ...


class LocalFilesystem:
    """FilesystemCapability backed by the local disk (blocking calls run in a worker thread)"""

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.exists, path)

    async def is_dir(self, path: str) -> bool:
        result = await asyncio.to_thread(os.stat, path)
        return stat.S_ISDIR(result.st_mode)


def default_filesystem() -> Optional[FilesystemCapability]:
    """Local filesystem, or None when filesystem checks are disabled in Config"""
    return LocalFilesystem() if Config.FILESYSTEM_CHECKS else None


# ============================================================================
# Rule helpers
# ============================================================================

class Checks:
    """Issue/warning accumulator for one field"""

    def __init__(self, requirement: RequirementDescriptor):
        self.field = requirement.name
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationWarning] = []

    def error(self, code: ValidationCode, message: str) -> None:
        self.errors.append(ValidationIssue(field=self.field, message=message, code=code.value))

    def warn(self, message: str) -> None:
        self.warnings.append(ValidationWarning(field=self.field, message=message))


def type_name(value: Any) -> str:
    return type(value).__name__


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def check_bounds(checks: Checks, amount: float, minimum: Optional[float], maximum: Optional[float], what: str) -> None:
    if minimum is not None and amount < minimum:
        checks.error(ValidationCode.BELOW_MIN, f"{what} {amount} is below minimum {minimum}")
    if maximum is not None and amount > maximum:
        checks.error(ValidationCode.EXCEEDS_MAX, f"{what} {amount} exceeds maximum {maximum}")


def option_values(requirement: RequirementDescriptor) -> List[Any]:
    return [option.value for option in requirement.options or []]


def normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    return extension if extension.startswith('.') else f".{extension}"


def parse_date(value: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return None


def resolve_date_bound(bound: str) -> Optional[date]:
    """A YYYY-MM-DD bound, or "today" resolved against the wall clock"""
    if bound == 'today':
        return date.today()
    return parse_date(bound)


def is_empty(value: Any) -> bool:
    return value is None or value == '' or (isinstance(value, (list, tuple)) and len(value) == 0)


# ============================================================================
# Type rules (pure)
# ============================================================================

def validate_string(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, str):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a string, got {type_name(value)}")
        return
    if value == '':
        return
    if requirement.min is not None and len(value) < requirement.min:
        checks.error(ValidationCode.TOO_SHORT, f"Value must be at least {requirement.min:g} characters")
    if requirement.max is not None and len(value) > requirement.max:
        checks.error(ValidationCode.TOO_LONG, f"Value must be at most {requirement.max:g} characters")


def validate_number(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not is_number(value):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a number, got {type_name(value)}")
        return
    check_bounds(checks, value, requirement.min, requirement.max, "Value")


def validate_boolean(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, bool):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a boolean, got {type_name(value)}")


def validate_select(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if isinstance(value, (list, tuple, dict)):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a single option, got {type_name(value)}")
        return
    valid = option_values(requirement)
    if valid and value not in valid and value != '':
        checks.error(
            ValidationCode.INVALID_OPTION,
            f"Invalid option \"{value}\". Valid options: {', '.join(str(v) for v in valid)}"
        )


def validate_multiselect(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, (list, tuple)):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a list for multiselect, got {type_name(value)}")
        return
    valid = option_values(requirement)
    if valid:
        for item in value:
            if item not in valid:
                checks.error(
                    ValidationCode.INVALID_OPTION,
                    f"Invalid option \"{item}\". Valid options: {', '.join(str(v) for v in valid)}"
                )
    check_bounds(checks, len(value), requirement.min, requirement.max, "Selection count")


def validate_rating(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not is_number(value):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a number, got {type_name(value)}")
        return
    if isinstance(value, float) and not value.is_integer():
        checks.error(ValidationCode.NOT_INTEGER, f"Rating must be a whole number, got {value}")
    minimum = requirement.min if requirement.min is not None else 1
    maximum = requirement.max if requirement.max is not None else 5
    check_bounds(checks, value, minimum, maximum, "Rating")


def validate_date(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, str):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a date string, got {type_name(value)}")
        return
    if value == '':
        return
    parsed = parse_date(value)
    if parsed is None:
        checks.error(ValidationCode.INVALID_DATE, f"Invalid date format: \"{value}\"")
        return
    if requirement.min_date:
        earliest = resolve_date_bound(requirement.min_date)
        if earliest is not None and parsed < earliest:
            checks.error(ValidationCode.DATE_TOO_EARLY, f"Date must be on or after {requirement.min_date}")
    if requirement.max_date:
        latest = resolve_date_bound(requirement.max_date)
        if latest is not None and parsed > latest:
            checks.error(ValidationCode.DATE_TOO_LATE, f"Date must be on or before {requirement.max_date}")


def file_paths(requirement: RequirementDescriptor, value: Any) -> List[str]:
    if requirement.multiple:
        return [item for item in value if isinstance(item, str) and item]
    return [value] if value else []


def validate_file(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if requirement.multiple:
        if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
            checks.error(ValidationCode.INVALID_TYPE, f"Expected a list of file paths, got {type_name(value)}")
            return
    elif not isinstance(value, str):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a file path string, got {type_name(value)}")
        return

    if not requirement.extensions:
        return
    allowed = [normalize_extension(extension) for extension in requirement.extensions]
    for path in file_paths(requirement, value):
        extension = os.path.splitext(path)[1].lower()
        if extension not in allowed:
            checks.error(
                ValidationCode.INVALID_EXTENSION,
                f"File \"{path}\" has invalid extension \"{extension}\". Allowed: {', '.join(allowed)}"
            )


def validate_path(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, str):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a path string, got {type_name(value)}")


def validate_object(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, Mapping):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected an object, got {type_name(value)}")


def validate_array(requirement: RequirementDescriptor, value: Any, checks: Checks) -> None:
    if not isinstance(value, (list, tuple)):
        checks.error(ValidationCode.INVALID_TYPE, f"Expected a list, got {type_name(value)}")
        return
    check_bounds(checks, len(value), requirement.min, requirement.max, "Item count")


TypeRule = Callable[[RequirementDescriptor, Any, Checks], None]

TYPE_RULES: Dict[str, TypeRule] = {
    'string': validate_string,
    'secret': validate_string,
    'number': validate_number,
    'boolean': validate_boolean,
    'select': validate_select,
    'multiselect': validate_multiselect,
    'rating': validate_rating,
    'date': validate_date,
    'file': validate_file,
    'path': validate_path,
    'object': validate_object,
    'array': validate_array,
}


# ============================================================================
# Existence rules (need a filesystem capability)
# ============================================================================

async def check_file_exists(
    requirement: RequirementDescriptor,
    value: Any,
    checks: Checks,
    filesystem: Optional[FilesystemCapability]
) -> None:
    paths = file_paths(requirement, value)
    if not requirement.must_exist or not paths:
        return
    if filesystem is None:
        checks.warn(f"Filesystem access unavailable; file existence not checked for: {', '.join(paths)}")
        return
    found = await asyncio.gather(*(filesystem.exists(path) for path in paths))
    for path, exists in zip(paths, found):
        if not exists:
            checks.error(ValidationCode.FILE_NOT_FOUND, f"File does not exist: \"{path}\"")


async def check_path_exists(
    requirement: RequirementDescriptor,
    value: Any,
    checks: Checks,
    filesystem: Optional[FilesystemCapability]
) -> None:
    if not value or not (requirement.must_exist or requirement.must_be_directory):
        return
    if filesystem is None:
        checks.warn(f"Filesystem access unavailable; path validation skipped for: {value}")
        return

    exists = await filesystem.exists(value)
    if not exists:
        if requirement.must_exist:
            checks.error(ValidationCode.PATH_NOT_FOUND, f"Path does not exist: \"{value}\"")
        return
    if not requirement.must_be_directory:
        return
    try:
        is_dir = await filesystem.is_dir(value)
    except OSError as e:
        if requirement.must_exist:
            checks.error(ValidationCode.PATH_ACCESS_ERROR, f"Cannot access path: \"{value}\" ({e})")
        return
    if not is_dir:
        checks.error(ValidationCode.NOT_A_DIRECTORY, f"Path is not a directory: \"{value}\"")


ExistenceRule = Callable[[RequirementDescriptor, Any, Checks, Optional[FilesystemCapability]], Awaitable[None]]

EXISTENCE_RULES: Dict[str, ExistenceRule] = {
    'file': check_file_exists,
    'path': check_path_exists,
}


async def validate_input(
    requirement: RequirementDescriptor,
    value: Any,
    filesystem: Optional[FilesystemCapability] = None
) -> ValidationResult:
    """
    Validate one submitted value against its requirement

    Args:
        requirement: Requirement the value answers
        value: Submitted value (None means no answer)
        filesystem: Capability for existence checks; None turns them into warnings

    Returns:
        ValidationResult
    """
    checks = Checks(requirement)

    if value is not None:
        rule = TYPE_RULES.get(requirement.type)
        if rule is not None:
            rule(requirement, value, checks)
        existence_rule = EXISTENCE_RULES.get(requirement.type)
        type_failed = any(error.code == ValidationCode.INVALID_TYPE.value for error in checks.errors)
        if existence_rule is not None and not type_failed:
            await existence_rule(requirement, value, checks, filesystem)

    if requirement.required and is_empty(value):
        checks.error(ValidationCode.REQUIRED, f"{requirement.label or requirement.name} is required")

    if checks.errors:
        logger.debug(f"Input '{requirement.name}' rejected: {', '.join(e.code for e in checks.errors)}")
    return ValidationResult(valid=not checks.errors, errors=checks.errors, warnings=checks.warnings)
