#!/usr/bin/env python3
"""
Treasury DAO Dashboard

Web interface listing proposals with their votes and status, and letting the
connected account create proposals, vote and finalize. All state is read
from the node on every page load.
"""

import logging
import secrets
from typing import Any, Optional

from flask import Flask, flash, jsonify, redirect, render_template_string, request, session, url_for

from ..client import DAOClient
from ..core.exceptions import DAOError
from ..core.units import format_units, parse_units

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Treasury DAO</title>
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #0a0a0a;
            color: #e0e0e0;
        }
        .container { max-width: 1100px; margin: 0 auto; padding: 20px; }
        header {
            display: flex;
            justify-content: space-between;
            align-items: center;
            padding: 20px 0 30px;
            border-bottom: 1px solid #222;
            margin-bottom: 30px;
        }
        h1 { font-size: 1.8rem; color: #00d4aa; }
        .account { background: #111; padding: 10px 20px; border-radius: 8px; border: 1px solid #222; }
        .account input { background: transparent; border: none; color: #888; width: 340px; }
        .flash { padding: 12px; border-radius: 8px; margin-bottom: 20px; background: #331111; color: #ff8080; }
        .flash.ok { background: #113322; color: #80ffc0; }
        form.create { display: flex; gap: 10px; margin-bottom: 20px; }
        form.create input { flex: 1; padding: 10px; background: #111; border: 1px solid #222; color: #e0e0e0; }
        button { padding: 8px 16px; background: #00d4aa; color: #000; border: none; border-radius: 6px; cursor: pointer; }
        .treasury { text-align: center; padding: 20px 0; border-top: 1px solid #222; border-bottom: 1px solid #222; margin-bottom: 20px; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 10px; border-bottom: 1px solid #222; text-align: left; }
        th { color: #666; font-weight: 500; }
        .status-approved { color: #00d4aa; }
        .status-open { color: #f0c040; }
    </style>
</head>
<body>
<div class="container">
    <header>
        <h1>Welcome to our DAO!</h1>
        <form class="account" method="get" action="{{ url_for('index') }}">
            <input name="account" value="{{ account or '' }}" placeholder="Connect account address">
        </form>
    </header>

    {% for category, message in get_flashed_messages(with_categories=true) %}
    <div class="flash {{ 'ok' if category == 'ok' else '' }}">{{ message }}</div>
    {% endfor %}

    {% if error %}
    <div class="flash">{{ error }}</div>
    {% else %}
    <form class="create" method="post" action="{{ url_for('create_proposal') }}">
        <input name="name" placeholder="Enter name" required>
        <input name="amount" placeholder="Enter amount" required>
        <input name="recipient" placeholder="Enter address" required>
        <button type="submit">Create Proposal</button>
    </form>

    <p class="treasury"><strong>Treasury Balance:</strong> {{ treasury_balance }} ETH
        &middot; <strong>Quorum:</strong> {{ quorum }}</p>

    <table>
        <thead>
            <tr>
                <th>#</th><th>Proposal Name</th><th>Recipient Address</th><th>Amount</th>
                <th>Status</th><th>Total Votes</th><th>Cast Vote</th><th>Finalize</th>
            </tr>
        </thead>
        <tbody>
        {% for p in proposals %}
            <tr>
                <td>{{ p.id }}</td>
                <td>{{ p.name }}</td>
                <td>{{ p.recipient }}</td>
                <td>{{ p.amount_display }} ETH</td>
                <td class="{{ 'status-approved' if p.finalized else 'status-open' }}">
                    {{ 'Approved' if p.finalized else 'In Progress' }}</td>
                <td>{{ p.votes_display }}</td>
                <td>{% if not p.finalized %}
                    <form method="post" action="{{ url_for('vote', proposal_id=p.id) }}"><button>Vote</button></form>
                {% endif %}</td>
                <td>{% if not p.finalized and p.votes >= quorum_raw %}
                    <form method="post" action="{{ url_for('finalize', proposal_id=p.id) }}"><button>Finalize</button></form>
                {% endif %}</td>
            </tr>
        {% endfor %}
        </tbody>
    </table>
    {% endif %}
</div>
</body>
</html>
"""


def _decorate(proposal: dict[str, Any]) -> dict[str, Any]:
    return {
        **proposal,
        "amount_display": format_units(int(proposal["amount"])),
        "votes_display": format_units(int(proposal["votes"])),
    }


def create_dashboard_app(client: DAOClient, default_account: Optional[str] = None) -> Flask:
    """
    Build the dashboard around a node client.

    Args:
        client: Client pointed at the node
        default_account: Account used until the visitor connects another one
    """
    app = Flask(__name__)
    app.secret_key = secrets.token_hex(32)

    def current_account() -> Optional[str]:
        return session.get("account") or default_account

    def acting_client() -> DAOClient:
        account = current_account()
        if not account:
            raise DAOError("Connect an account first")
        return client.as_account(account)

    def run_action(action, success_message: str):
        try:
            action()
            flash(success_message, "ok")
        except (DAOError, ValueError) as exc:
            logger.warning("Dashboard action failed: %s", exc)
            flash(str(exc), "error")
        return redirect(url_for("index"))

    @app.route("/")
    def index():
        """Render the governance dashboard."""
        if request.args.get("account"):
            session["account"] = request.args["account"].strip()

        context: dict[str, Any] = {"account": current_account(), "error": None}
        try:
            info = client.info()
            proposals = client.list_proposals()
        except DAOError as exc:
            logger.error("Dashboard could not load node state: %s", exc)
            context["error"] = f"Could not load DAO state: {exc}"
            return render_template_string(HTML_TEMPLATE, **context), 502

        context.update(
            treasury_balance=format_units(int(info["treasury_balance"])),
            quorum=format_units(int(info["quorum"])),
            quorum_raw=int(info["quorum"]),
            proposals=[_decorate(p) for p in proposals],
        )
        return render_template_string(HTML_TEMPLATE, **context)

    @app.route("/proposals", methods=["POST"])
    def create_proposal():
        name = request.form.get("name", "").strip()
        recipient = request.form.get("recipient", "").strip()
        amount = request.form.get("amount", "").strip()
        return run_action(
            lambda: acting_client().create_proposal(name, parse_units(amount), recipient),
            f"Proposal '{name}' created",
        )

    @app.route("/proposals/<int:proposal_id>/vote", methods=["POST"])
    def vote(proposal_id: int):
        return run_action(
            lambda: acting_client().vote(proposal_id),
            f"Voted on proposal {proposal_id}",
        )

    @app.route("/proposals/<int:proposal_id>/finalize", methods=["POST"])
    def finalize(proposal_id: int):
        return run_action(
            lambda: acting_client().finalize_proposal(proposal_id),
            f"Proposal {proposal_id} finalized",
        )

    @app.route("/api/proposals")
    def api_proposals():
        """Proposals as JSON, for polling views."""
        try:
            return jsonify({"proposals": client.list_proposals()})
        except DAOError as exc:
            return jsonify({"success": False, "error": str(exc)}), 502

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    return app
