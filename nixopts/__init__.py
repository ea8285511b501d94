"""nixopts: option documentation extracted from Nix module trees."""

__version__ = "0.3.0"

__all__ = ["__version__"]
