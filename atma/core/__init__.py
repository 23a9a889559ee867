"""Core palette engine: parser, validator, store, history and collaborators.

Nothing in here imports the CLI layer.
"""
