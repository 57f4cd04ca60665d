"""
Local deployment of the governance stack.

Stands up what a development chain would provide: a set of funded dev
accounts, the governance token with its whole supply held by the deployer,
and the DAO whose address holds the treasury.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..governance.dao import DAO
from ..governance.events import EventLog
from ..treasury.treasury import Treasury
from .accounts import AccountLedger, derive_address
from .config import DAOConfig
from .contracts.erc20 import ERC20Token
from .metrics import GovernanceMetrics
from .units import parse_units

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    accounts: AccountLedger
    dev_accounts: List[str]
    token: ERC20Token
    treasury: Treasury
    dao: DAO
    metrics: GovernanceMetrics

    @property
    def deployer(self) -> str:
        return self.dev_accounts[0]


def dev_account_addresses(count: int) -> List[str]:
    return [derive_address(f"dev-account:{index}") for index in range(count)]


def deploy(config: Optional[DAOConfig] = None) -> Deployment:
    """
    Deploy accounts, token, treasury and DAO from configuration.

    Returns:
        The wired-up deployment
    """
    config = config or DAOConfig()
    config.validate()

    accounts = AccountLedger()
    addresses = dev_account_addresses(config.dev_accounts)
    if config.dev_account_balance > 0:
        for address in addresses:
            accounts.credit(address, parse_units(config.dev_account_balance))

    deployer = addresses[0]
    token = ERC20Token(
        name=config.token_name,
        symbol=config.token_symbol,
        owner=deployer,
    )
    token.mint(deployer, deployer, parse_units(config.token_supply, token.decimals))

    metrics = GovernanceMetrics()
    treasury = Treasury(derive_address(f"dao:{token.address}:{deployer}"), accounts)
    dao = DAO(
        token=token,
        treasury=treasury,
        quorum=config.quorum,
        event_log=EventLog(config.event_log_path),
        metrics=metrics,
    )

    logger.info(
        "Deployment complete",
        extra={
            "event": "deployment.complete",
            "token": token.address,
            "dao": dao.address,
            "accounts": len(addresses),
        },
    )
    return Deployment(
        accounts=accounts,
        dev_accounts=addresses,
        token=token,
        treasury=treasury,
        dao=dao,
        metrics=metrics,
    )
