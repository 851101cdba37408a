"""
Generator - Response Composition

Key Components:
- ModelGenerator: prompt assembly + completion provider dispatch
- CustomGenerator: caller-supplied generation function
- resolve_context: literal-or-file context resolution
"""

from .context import resolve_context
from .generator import CustomGenerator, ModelGenerator, ResponseGenerator, build_generator

__all__ = [
    "CustomGenerator",
    "ModelGenerator",
    "ResponseGenerator",
    "build_generator",
    "resolve_context",
]
