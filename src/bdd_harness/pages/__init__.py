"""Page objects."""

from .example_page import ExamplePage

__all__ = ['ExamplePage']
