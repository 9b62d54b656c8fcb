"""Shared helpers that carry no domain logic."""
