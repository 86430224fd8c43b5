"""Shared infrastructure: configuration, logging and schemas."""
