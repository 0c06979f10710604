"""Layout-transformation support for reduced builds.

This module guarantees that ops the layout transformation pass may insert
stay resolvable when the working resolver came from a reduced registry.
"""
