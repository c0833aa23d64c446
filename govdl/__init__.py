"""Media models, download settings, HLS playlist parsing, HTTP clients and JSON lookup."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "m3u8",
    "media",
    "networking",
    "traverse",
]