"""Use-case layer for wallet sessions, note transactions and reads.

Each module coordinates domain objects and ports without performing transport
I/O directly; adapter errors are translated through ``error_mapping``.
"""
