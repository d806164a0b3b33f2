"""Evaluator helper modules for the mobjc runtime."""

__all__ = [
    "blocks",
    "expr",
    "fn",
    "helpers",
    "loops",
    "objects",
]
