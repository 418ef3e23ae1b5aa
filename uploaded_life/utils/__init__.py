"""
Generic utility functions shared across modules.

Includes logging setup for the command-line actions.
"""
