"""
FastAPI Invoice Backend package.

The application object lives in `src.api.main` (`app`, or `create_app()` to
build one with injected settings and gateway).
"""
