"""
depth_sim – hypothetical order execution against depth-of-book snapshots.

Poses market or limit orders against a venue's visible top-of-book levels and
reports fills, average price, slippage, market impact and queue position.
"""
