"""
Order book snapshot model and schema enforcement.

Defines the immutable price-level and snapshot types every simulation reads,
together with the normalisation helpers used when building them.
"""
