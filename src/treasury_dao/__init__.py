"""
Treasury DAO

Token-weighted governance over a shared treasury: holders propose transfers,
vote with their token balance, and a quorum-gated finalize step pays out.
"""

__version__ = "0.1.0"
