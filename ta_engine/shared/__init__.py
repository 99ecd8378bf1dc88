"""Shared types, defaults and errors used across the engine."""
