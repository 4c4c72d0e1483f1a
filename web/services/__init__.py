"""
Web Services Package.

Thin wrappers over core/ used by the Flask blueprints.
"""
