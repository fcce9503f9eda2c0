"""
Single entry point for running simulations and comparing timing scenarios.
"""
