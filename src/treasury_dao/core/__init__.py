"""
Core building blocks: accounts, token, configuration, logging and metrics.
"""
