"""
Report generation.

Modules:
- progress: static HTML migration progress report
"""
