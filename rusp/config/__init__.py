"""Interpreter configuration helpers."""
