__version__ = "1.0.0"

__all__ = [
    "api",
    "core",
    "services",
]
