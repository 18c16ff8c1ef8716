"""Configuration and file helpers."""
