"""
Utility Package.

Console/logging configuration and helpers for runtime type expressions.
"""
