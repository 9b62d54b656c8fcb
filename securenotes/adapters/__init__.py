"""Adapter package for external I/O implementations.

Purpose:
    Concrete implementations for domain ports: the JSON-RPC wallet provider
    over HTTP, the notes contract codec, local signer recovery, the settings
    file store, and in-memory test doubles.

Call context:
    Imported by ``securenotes.app.controller`` for runtime wiring and by tests.
"""
