"""Core utilities and shared infrastructure.

- config: Client configuration loading and validation
- constants: Named constants, header names, defaults
- exceptions: Custom exception hierarchy
"""
