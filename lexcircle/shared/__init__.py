"""
Shared kernel for LexCircle.
Configuration, core exceptions and security, database infrastructure and logging utilities.
"""
