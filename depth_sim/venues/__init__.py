"""
Venue adapters for depth-of-book ingestion.

Parses venue-native order book messages into canonical snapshots and tracks
per-venue connection status without participating in simulation.
"""
