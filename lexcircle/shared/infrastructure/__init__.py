"""
Infrastructure layer package for LexCircle.
Provides the async database engine and session factory.
"""
