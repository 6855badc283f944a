"""
LogAccessCommand.

Command to record an access by an already verified client.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class LogAccessCommand:
    """Command to append a non-risky access log entry."""

    email: str
    code: str
    ip: str
    page_path: Optional[str] = None
