"""Shared schemas, errors and validators."""
