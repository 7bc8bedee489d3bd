"""System-wide error types and settings models."""
