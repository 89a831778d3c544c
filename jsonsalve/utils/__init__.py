"""Configuration helpers for jsonsalve."""
