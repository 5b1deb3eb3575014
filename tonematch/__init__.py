"""tonematch: style-faithful reply drafting from a user's own past messages."""

__version__ = "0.1.0"
