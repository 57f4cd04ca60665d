"""
HTTP client for the treasury DAO node.

Used by the dashboard, the CLI and the seed script. Governance errors
returned by the node are raised again as the matching exception class, so a
``QuorumNotReached`` on the node is a ``QuorumNotReached`` here too.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .core.exceptions import DAOError, error_for_code

logger = logging.getLogger(__name__)


class DAOClientError(DAOError):
    """Raised when the node cannot be reached or returns an unexpected reply."""

    code = "client_error"

    def __init__(self, message: str, status: Optional[int] = None, details=None):
        super().__init__(message, details)
        self.status = status


class DAOClient:
    """Client for DAO node API operations."""

    def __init__(
        self,
        node_url: str,
        account: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.node_url = node_url.rstrip("/")
        self.account = account
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def as_account(self, account: str) -> "DAOClient":
        """Return a client acting on behalf of another account."""
        return DAOClient(
            self.node_url,
            account=account,
            api_key=self.api_key,
            timeout=self.timeout,
            session=self.session,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if self.account:
            headers["X-Account"] = self.account
        return headers

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """Make an HTTP request and decode the JSON reply."""
        url = f"{self.node_url}/{endpoint.lstrip('/')}"
        logger.debug("DAO request: %s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.exceptions.RequestException as exc:
            logger.error("DAO node unreachable: %s", exc)
            raise DAOClientError(f"DAO node unreachable: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text}

        if 200 <= response.status_code < 300:
            return data

        code = data.get("code", "")
        message = data.get("error", f"HTTP {response.status_code}")
        error_cls = error_for_code(code)
        logger.debug(
            "DAO request rejected: %s (%s)", message, code or response.status_code
        )
        if error_cls is DAOError:
            raise DAOClientError(message, status=response.status_code, details=data)
        raise error_cls(message, details=data.get("details"))

    # ==================== Queries ====================

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def info(self) -> Dict[str, Any]:
        """Quorum, treasury balance, proposal count and contract addresses."""
        return self._request("GET", "/dao")

    def proposal_count(self) -> int:
        return int(self.info()["proposal_count"])

    def quorum(self) -> int:
        return int(self.info()["quorum"])

    def treasury_balance(self) -> int:
        return int(self.info()["treasury_balance"])

    def list_proposals(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/proposals").get("proposals", [])

    def get_proposal(self, proposal_id: int, voter: Optional[str] = None) -> Dict[str, Any]:
        params = {"voter": voter} if voter else None
        return self._request("GET", f"/proposals/{int(proposal_id)}", params=params)["proposal"]

    def events(self, since: int = 0) -> List[Dict[str, Any]]:
        return self._request("GET", "/events", params={"since": since}).get("events", [])

    def accounts(self) -> List[str]:
        return self._request("GET", "/accounts").get("accounts", [])

    def account(self, address: str) -> Dict[str, Any]:
        return self._request("GET", f"/accounts/{address}")

    # ==================== Commands ====================

    def create_proposal(self, name: str, amount: int, recipient: str) -> Dict[str, Any]:
        payload = {"name": name, "amount": amount, "recipient": recipient}
        return self._request("POST", "/proposals", json=payload)["proposal"]

    def vote(self, proposal_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/proposals/{int(proposal_id)}/vote")["proposal"]

    def finalize_proposal(self, proposal_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/proposals/{int(proposal_id)}/finalize")["proposal"]

    def transfer_tokens(self, recipient: str, amount: int) -> Dict[str, Any]:
        return self._request(
            "POST", "/token/transfer", json={"recipient": recipient, "amount": amount}
        )

    def deposit(self, amount: int) -> Dict[str, Any]:
        return self._request("POST", "/treasury/deposit", json={"amount": amount})
