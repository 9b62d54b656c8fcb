"""ViewModel package for UI state and command surfaces.

Modules here depend on domain types and lightweight formatting helpers only;
I/O adapters and use-case orchestration stay in ``securenotes.app``.
"""
