"""In-memory kernel type-string resolver.

This module maps operator identifiers to their type-constraint tables.
It supports merging, exact lookups, and nearest-prior version lookups.
"""
