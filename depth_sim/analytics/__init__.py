"""
Book metrics and depth analytics.

Mid price, spread, slippage and impact in basis points, plus cumulative depth
tables for presentation.
"""
