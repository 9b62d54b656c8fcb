"""Application composition layer.

Controllers and presenters in this package wire adapters, use cases and view
models into a runnable notes workflow without placing business logic in views.
"""
