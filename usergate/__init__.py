"""usergate: user-management API with pluggable storage backends and cookie-based JWT sessions."""

__version__ = "0.1.0"
