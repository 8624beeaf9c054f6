"""
Audit module.

Append-only trail of catalog and stock changes.
"""
