"""
Input collection: the step-by-step iterator and the validation rules it applies
"""
from .iterator import InputIterator, IteratorState, create_input_iterator
from .validation import (
    EXISTENCE_RULES,
    TYPE_RULES,
    FilesystemCapability,
    LocalFilesystem,
    ValidationCode,
    validate_input,
)

__all__ = [
    'InputIterator',
    'IteratorState',
    'create_input_iterator',
    'EXISTENCE_RULES',
    'TYPE_RULES',
    'FilesystemCapability',
    'LocalFilesystem',
    'ValidationCode',
    'validate_input',
]
