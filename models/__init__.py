"""
==========================
Value models for contexts.
==========================

Modules:
    schema: TableRef and JoinKey descriptors
"""

__all__ = ['TableRef', 'JoinKey']

from .schema import JoinKey, TableRef
