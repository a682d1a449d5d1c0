"""UI-agnostic Ex command-line interpreter."""

__all__ = [
    "adapters",
    "backend",
    "buffer",
    "cmdline",
    "context",
    "engine",
    "errors",
    "runtime",
]

__version__ = "0.1.0"
