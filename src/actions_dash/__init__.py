"""Terminal dashboard for browsing and controlling GitHub Actions workflows."""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
