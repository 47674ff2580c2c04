"""
Tasks Backend package.

The FastAPI application lives in ``src.api.main`` (``app`` for the default
process-wide instance, ``create_app`` to build one from explicit settings).
"""
