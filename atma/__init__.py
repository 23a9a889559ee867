"""atma: a scriptable colour palette editor with undo/redo."""

__version__ = '0.1.0'
