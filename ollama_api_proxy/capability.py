"""Model capabilities."""

from enum import Enum


class Capability(str, Enum):
    """A feature a model can offer."""

    COMPLETION = "completion"
    TOOLS = "tools"
    INSERT = "insert"
    VISION = "vision"
    EMBEDDING = "embedding"
    THINKING = "thinking"

    def __str__(self) -> str:
        return self.value