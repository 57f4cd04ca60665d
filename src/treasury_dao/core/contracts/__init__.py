"""Token contracts backing the DAO."""

from .erc20 import ERC20Token, TokenEvent

__all__ = ["ERC20Token", "TokenEvent"]
