"""
Shared fixtures for DAO tests.

The default deployment mirrors the classic DAO scenario: five investors hold
200,000 tokens each (20% of supply), quorum is just over 50% of supply, and a
funder has put 100 units into the treasury. Dev accounts start with 10,000.
"""

from types import SimpleNamespace
from urllib.parse import urlsplit

import pytest

from treasury_dao.core.config import DAOConfig
from treasury_dao.core.deployment import deploy
from treasury_dao.core.units import parse_ether as ether

QUORUM = "500000000000000000000001"


@pytest.fixture
def config():
    return DAOConfig(
        token_name="Dapp University",
        token_symbol="DAPP",
        token_supply=1_000_000,
        quorum=int(QUORUM),
        dev_accounts=10,
    )


@pytest.fixture
def deployment(config):
    d = deploy(config)
    deployer = d.deployer
    for investor in d.dev_accounts[2:7]:
        d.token.transfer(deployer, investor, ether(200000))
    d.treasury.deposit(d.dev_accounts[1], ether(100))
    return d


@pytest.fixture
def accounts(deployment):
    dev = deployment.dev_accounts
    return SimpleNamespace(
        deployer=deployment.deployer,
        funder=dev[1],
        investors=dev[2:7],
        recipient=dev[7],
        user=dev[8],
    )


@pytest.fixture
def dao(deployment):
    return deployment.dao


class _Response:
    def __init__(self, flask_response):
        self._response = flask_response
        self.status_code = flask_response.status_code
        self.text = flask_response.get_data(as_text=True)

    def json(self):
        data = self._response.get_json(silent=True)
        if data is None:
            raise ValueError("No JSON body")
        return data


class FlaskSession:
    """requests.Session stand-in routing DAOClient calls into a Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def request(self, method, url, headers=None, timeout=None, json=None, params=None):
        path = urlsplit(url).path
        self.calls.append((method, path))
        response = self.test_client.open(
            path, method=method, headers=headers or {}, json=json, query_string=params
        )
        return _Response(response)


@pytest.fixture
def node_app(deployment, config):
    from treasury_dao.api.node_api import create_app

    app = create_app(deployment, config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def node_session(node_app):
    return FlaskSession(node_app.test_client())


@pytest.fixture
def node_client(node_session):
    from treasury_dao.client import DAOClient

    return DAOClient("http://node.test", session=node_session)


@pytest.fixture
def client_for(config):
    """Build a DAOClient wired to a node app serving the given deployment."""
    from treasury_dao.api.node_api import create_app
    from treasury_dao.client import DAOClient

    def build(target_deployment):
        app = create_app(target_deployment, config)
        app.config["TESTING"] = True
        return DAOClient("http://node.test", session=FlaskSession(app.test_client()))

    return build
