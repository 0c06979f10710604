"""Binary persistence format for kernel type-string resolvers.

This module encodes resolvers into FlatBuffers tables tagged "ktsr"
and verifies untrusted buffers before any field is read.
"""
