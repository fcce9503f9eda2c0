"""
Configuration loading and validation for simulation and venue settings.

Provides strongly typed settings objects loaded from environment variables
with upfront validation.
"""
