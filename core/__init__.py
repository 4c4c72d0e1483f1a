"""
Tracker Core Package.

This package contains the core business logic of the application,
separated from the web layer.

ARCHITECTURE RULES:
- core/ modules may only import from:
  - Python standard library
  - tracking/ (session timer, conflict checks, storage)
  - config and logging_config

- core/ modules MUST NOT import from:
  - web/ (no Flask dependencies)
  - flask, werkzeug, or any web-specific packages

- All new business logic should be placed here, not in web/
"""

__all__ = [
    "duration_core",
    "tracking_core",
]
