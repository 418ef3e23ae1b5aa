"""
Configuration management for the dataset loader.

Loads settings from environment variables (.env) into frozen dataclasses.
"""
