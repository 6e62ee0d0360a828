"""Shared infrastructure: configuration, logging and HTTP utilities."""
