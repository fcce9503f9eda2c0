"""
Generic utility functions shared across modules.

Includes numeric helpers and logging setup.
"""
