"""Exceptions raised at the input boundary (YAML loader, CLI, ensemble)."""


class InvalidParameter(ValueError):
    """A treatment or run parameter is outside what the model accepts."""
