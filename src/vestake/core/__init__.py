"""
vestake Core Module

Core functionality for the staking engine including:
- Staking instances, reward schedules and the vault
- Token primitives and access control
- Configuration, logging, metrics and error types
"""

__all__ = []
