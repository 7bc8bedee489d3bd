"""rusp: a tree-walking interpreter for an expression-oriented scripting language."""

__version__ = "0.1.0"
