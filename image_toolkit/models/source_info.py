from dataclasses import dataclass


@dataclass
class SourceInfo:
    """Where a pasted image came from: page/link URL and a human-readable title."""
    url: str
    title: str
