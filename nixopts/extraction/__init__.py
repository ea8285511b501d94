"""Option extraction: type normalization, descriptions, interpolation and the locator."""

from .admonitions import structure
from .interpolate import UnboundVariableError, placeholders, substitute
from .locator import LocateResult, OptionLocator, locate
from .types import is_type_expression, normalize

__all__ = [
    "LocateResult",
    "OptionLocator",
    "UnboundVariableError",
    "is_type_expression",
    "locate",
    "normalize",
    "placeholders",
    "structure",
    "substitute",
]
