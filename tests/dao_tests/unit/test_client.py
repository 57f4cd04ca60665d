"""
Tests for DAOClient.

The client runs against the real node app through a Flask-backed session,
so governance errors travel the full path: raised by the DAO, serialized by
the API, and raised again client-side as the same exception class.
"""

from unittest.mock import Mock

import pytest
import requests

from treasury_dao.client import DAOClient, DAOClientError
from treasury_dao.core.exceptions import (
    AlreadyFinalized,
    DuplicateVote,
    InsufficientFunds,
    NotFound,
    QuorumNotReached,
    Unauthorized,
)
from treasury_dao.core.units import parse_ether as ether


class TestQueries:
    def test_info_and_shortcuts(self, node_client, dao):
        assert node_client.health()["status"] == "healthy"
        assert node_client.quorum() == dao.quorum
        assert node_client.treasury_balance() == ether(100)
        assert node_client.proposal_count() == 0

    def test_accounts(self, node_client, deployment, accounts):
        assert node_client.accounts() == deployment.dev_accounts
        assert node_client.account(accounts.investors[0])["voting_power"] == ether(200000)


class TestGovernanceFlow:
    def test_propose_vote_finalize(self, node_client, accounts, deployment):
        proposer = node_client.as_account(accounts.investors[0])
        proposal = proposer.create_proposal("Proposal 1", ether(100), accounts.recipient)
        assert proposal["id"] == 1

        for investor in accounts.investors[:3]:
            node_client.as_account(investor).vote(1)

        finalized = proposer.finalize_proposal(1)
        assert finalized["finalized"] is True
        assert deployment.accounts.get_balance(accounts.recipient) == ether(10100)
        assert node_client.get_proposal(1, voter=accounts.investors[0])["has_voted"] is True
        assert [e["name"] for e in node_client.events()] == [
            "Propose",
            "Vote",
            "Vote",
            "Vote",
            "Finalize",
        ]
        assert len(node_client.events(since=4)) == 1

    def test_funding_commands(self, node_client, accounts):
        funder = node_client.as_account(accounts.funder)
        assert funder.deposit(ether(25))["treasury_balance"] == ether(125)

        sender = node_client.as_account(accounts.investors[0])
        result = sender.transfer_tokens(accounts.user, ether(1))
        assert result["recipient_balance"] == ether(1)

    def test_as_account_keeps_settings(self, node_session):
        client = DAOClient("http://node.test/", api_key="k", timeout=3.0, session=node_session)
        other = client.as_account("0xabc")
        assert other.node_url == "http://node.test"
        assert other.api_key == "k"
        assert other.timeout == 3.0
        assert other.session is node_session
        assert client.account is None


class TestErrorMapping:
    def test_unauthorized(self, node_client, accounts):
        with pytest.raises(Unauthorized, match="Must be token holder"):
            node_client.as_account(accounts.user).create_proposal(
                "Proposal 1", ether(1), accounts.recipient
            )

    def test_insufficient_funds(self, node_client, accounts):
        with pytest.raises(InsufficientFunds) as exc_info:
            node_client.as_account(accounts.investors[0]).create_proposal(
                "Proposal 1", ether(1000), accounts.recipient
            )
        assert exc_info.value.details["amount"] == ether(1000)

    def test_not_found(self, node_client):
        with pytest.raises(NotFound):
            node_client.get_proposal(42)

    def test_duplicate_vote(self, node_client, accounts):
        voter = node_client.as_account(accounts.investors[0])
        voter.create_proposal("Proposal 1", ether(1), accounts.recipient)
        voter.vote(1)
        with pytest.raises(DuplicateVote):
            voter.vote(1)

    def test_quorum_and_already_finalized(self, node_client, accounts):
        voter = node_client.as_account(accounts.investors[0])
        voter.create_proposal("Proposal 1", ether(1), accounts.recipient)
        voter.vote(1)
        with pytest.raises(QuorumNotReached):
            voter.finalize_proposal(1)

        for investor in accounts.investors[1:3]:
            node_client.as_account(investor).vote(1)
        voter.finalize_proposal(1)
        with pytest.raises(AlreadyFinalized):
            voter.finalize_proposal(1)

    def test_unknown_code_becomes_client_error(self, node_client):
        with pytest.raises(DAOClientError) as exc_info:
            node_client.vote(1)
        assert exc_info.value.status == 401
        assert exc_info.value.details["code"] == "missing_account"


class TestTransport:
    def test_headers_sent(self):
        session = Mock()
        session.request.return_value = Mock(status_code=200, json=Mock(return_value={"proposals": []}))
        client = DAOClient("http://node.test", account="0xabc", api_key="key", session=session)

        assert client.list_proposals() == []
        args, kwargs = session.request.call_args
        assert args == ("GET", "http://node.test/proposals")
        assert kwargs["headers"]["X-Account"] == "0xabc"
        assert kwargs["headers"]["X-API-Key"] == "key"
        assert kwargs["timeout"] == 10.0

    def test_unreachable_node(self):
        session = Mock()
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        client = DAOClient("http://node.test", session=session)

        with pytest.raises(DAOClientError, match="unreachable"):
            client.health()

    def test_non_json_error_body(self):
        session = Mock()
        session.request.return_value = Mock(
            status_code=502, text="Bad Gateway", json=Mock(side_effect=ValueError("no json"))
        )
        client = DAOClient("http://node.test", session=session)

        with pytest.raises(DAOClientError) as exc_info:
            client.info()
        assert exc_info.value.status == 502
        assert exc_info.value.message == "Bad Gateway"
