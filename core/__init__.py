"""
Core module for shared domain infrastructure.

This module contains:
- Domain events, exceptions and value objects
- Event bus and database utilities
- Metrics, tracing and management commands
"""
