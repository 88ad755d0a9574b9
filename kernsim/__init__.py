"""A model of a small x86 teaching kernel and its user-space helpers."""

__version__ = "0.1.0"