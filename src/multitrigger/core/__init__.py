"""Shared infrastructure: tracing and exceptions."""
