"""
Utility functions and helpers.

Modules:
- config: typed engine settings built from the workspace configuration
- files: file writing helpers
- logging: logging setup for the CLI
- progress: rich progress bars and summary panels
"""
