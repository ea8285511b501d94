"""Base class for output renderers."""

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import OptionRecord


class Renderer(ABC):
    """Turns the final option list into one output document."""

    name: str = ""
    extension: str = ""

    @abstractmethod
    def render(self, options: Sequence[OptionRecord]) -> str:
        """Return the complete document for ``options``."""
