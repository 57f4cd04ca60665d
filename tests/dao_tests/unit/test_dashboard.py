"""
Tests for the governance dashboard.
"""

from unittest.mock import Mock

import pytest

from treasury_dao.client import DAOClient, DAOClientError
from treasury_dao.core.units import parse_ether as ether
from treasury_dao.dashboard.governance_ui import create_dashboard_app


@pytest.fixture
def dashboard(node_client, accounts):
    app = create_dashboard_app(node_client, default_account=accounts.investors[0])
    app.config["TESTING"] = True
    return app.test_client()


class TestIndex:
    def test_renders_treasury_and_quorum(self, dashboard):
        response = dashboard.get("/")
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert "Welcome to our DAO!" in html
        assert "100.0 ETH" in html
        assert "500000.000000000000000001" in html

    def test_lists_proposals(self, dashboard, node_client, accounts):
        node_client.as_account(accounts.investors[0]).create_proposal(
            "Fund the docs", ether(10), accounts.recipient
        )
        html = dashboard.get("/").get_data(as_text=True)
        assert "Fund the docs" in html
        assert "10.0 ETH" in html
        assert "In Progress" in html

    def test_node_unreachable(self):
        client = Mock(spec=DAOClient)
        client.info.side_effect = DAOClientError("DAO node unreachable: refused")
        app = create_dashboard_app(client)

        response = app.test_client().get("/")
        assert response.status_code == 502
        assert "Could not load DAO state" in response.get_data(as_text=True)


class TestActions:
    def test_create_proposal_in_whole_units(self, dashboard, dao, accounts):
        response = dashboard.post(
            "/proposals",
            data={"name": "Proposal 1", "amount": "2.5", "recipient": accounts.recipient},
            follow_redirects=True,
        )
        assert response.status_code == 200
        assert "created" in response.get_data(as_text=True)
        assert dao.get_proposal(1).amount == ether("2.5")

    def test_vote_and_finalize(self, dashboard, dao, node_client, accounts):
        node_client.as_account(accounts.investors[0]).create_proposal(
            "Proposal 1", ether(100), accounts.recipient
        )
        for investor in accounts.investors[1:3]:
            node_client.as_account(investor).vote(1)

        html = dashboard.post("/proposals/1/vote", follow_redirects=True).get_data(as_text=True)
        assert "Voted on proposal 1" in html
        assert dao.has_voted(1, accounts.investors[0])

        html = dashboard.post("/proposals/1/finalize", follow_redirects=True).get_data(
            as_text=True
        )
        assert "Proposal 1 finalized" in html
        assert "Approved" in html
        assert dao.get_proposal(1).finalized is True

    def test_errors_are_flashed(self, dashboard, node_client, accounts):
        node_client.as_account(accounts.investors[0]).create_proposal(
            "Proposal 1", ether(100), accounts.recipient
        )
        html = dashboard.post("/proposals/1/finalize", follow_redirects=True).get_data(
            as_text=True
        )
        assert "Quorum not reached" in html
        assert node_client.get_proposal(1)["finalized"] is False

    def test_connect_other_account(self, dashboard, accounts):
        dashboard.get(f"/?account={accounts.user}")
        response = dashboard.post(
            "/proposals",
            data={"name": "Proposal 1", "amount": "1", "recipient": accounts.recipient},
            follow_redirects=True,
        )
        assert "Must be token holder" in response.get_data(as_text=True)

    def test_bad_amount_is_flashed(self, dashboard, accounts):
        response = dashboard.post(
            "/proposals",
            data={"name": "Proposal 1", "amount": "lots", "recipient": accounts.recipient},
            follow_redirects=True,
        )
        assert "Invalid amount" in response.get_data(as_text=True)


def test_api_proposals(dashboard, node_client, accounts):
    node_client.as_account(accounts.investors[0]).create_proposal(
        "Proposal 1", ether(1), accounts.recipient
    )
    data = dashboard.get("/api/proposals").get_json()
    assert [p["id"] for p in data["proposals"]] == [1]
    assert dashboard.get("/health").get_json()["status"] == "healthy"
