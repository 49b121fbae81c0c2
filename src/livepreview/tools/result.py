"""
Tool call results as reported back to the agent.
"""

from dataclasses import dataclass
from typing import Optional

from ..shared.errors import LivePreviewError


@dataclass
class ToolResult:
    """Outcome of one tool call; failures carry the error text instead of raising."""
    success: bool
    output: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(True, output)

    @classmethod
    def failed(cls, error: LivePreviewError) -> "ToolResult":
        return cls(False, "", f"Error: {error.message}")

    def __str__(self) -> str:
        return self.output if self.success else (self.error or "Error")
