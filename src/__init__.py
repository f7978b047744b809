"""recipe-ai: ingredient embedding and similarity search."""

from recipeai.version import __version__

__all__ = ["__version__"]
