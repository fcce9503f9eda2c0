"""
Order models and execution simulation logic.

Implements market order book walks, limit order classification, queue
position and time-to-fill estimates against a single snapshot.
"""
