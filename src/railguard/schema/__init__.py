"""
Structural enforcement of generated output.

- descriptor.py: StructuralDescriptor (strict-by-default decoding into a pydantic model)
"""

from .descriptor import StructuralDescriptor

__all__ = [
    "StructuralDescriptor",
]
