"""
Node API for the treasury DAO.

Serves the governance state machine over JSON/HTTP. The requester of every
state-changing call is taken from the ``X-Account`` header; when API keys are
configured every route except ``/health`` and ``/metrics`` also requires a
matching ``X-API-Key``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Type

from flask import Flask, Response, jsonify, request
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel, ValidationError

from ..core.config import DAOConfig
from ..core.deployment import Deployment, deploy
from ..core.exceptions import DAOError
from .schemas import ProposalCreateInput, TokenTransferInput, TreasuryDepositInput

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "unauthorized": 403,
    "insufficient_funds": 400,
    "not_found": 404,
    "duplicate_vote": 409,
    "already_finalized": 409,
    "quorum_not_reached": 409,
    "disbursement_failed": 409,
    "insufficient_balance": 400,
    "token_error": 400,
}

PUBLIC_ENDPOINTS = {"health", "metrics", "static"}


class RequestError(Exception):
    """Raised by route helpers for malformed requests."""

    def __init__(self, message: str, status: int = 400, code: str = "bad_request"):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


def _error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
) -> Tuple[Response, int]:
    """Return a JSON error response and log it."""
    log = logger.error if status >= 500 else logger.warning
    log(
        "API error: %s",
        message,
        extra={"event": "api.error", "code": code, "status": status, "path": request.path},
    )
    body: Dict[str, Any] = {"success": False, "error": message, "code": code}
    if context:
        body["details"] = context
    return jsonify(body), status


def _parse(model: Type[BaseModel]) -> Any:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise RequestError("Request body must be a JSON object", code="invalid_payload")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestError(
            "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()),
            code="validation_error",
        ) from exc


def _requester() -> str:
    account = request.headers.get("X-Account", "").strip()
    if not account:
        raise RequestError("X-Account header is required", status=401, code="missing_account")
    return account


def create_app(
    deployment: Optional[Deployment] = None,
    config: Optional[DAOConfig] = None,
) -> Flask:
    """
    Build the node API around a deployment.

    Args:
        deployment: Existing deployment to serve; a fresh one is created
            from ``config`` when omitted
        config: Node configuration
    """
    config = config or DAOConfig()
    deployment = deployment or deploy(config)
    dao = deployment.dao
    api_keys = set(config.api_keys)

    app = Flask(__name__)
    app.config["DEPLOYMENT"] = deployment

    @app.before_request
    def check_api_key():
        if not api_keys or request.endpoint in PUBLIC_ENDPOINTS:
            return None
        if request.headers.get("X-API-Key", "") not in api_keys:
            return _error_response("Invalid or missing API key", status=401, code="invalid_api_key")
        return None

    @app.errorhandler(DAOError)
    def handle_dao_error(exc: DAOError):
        return _error_response(
            exc.message,
            status=STATUS_BY_CODE.get(exc.code, 400),
            code=exc.code,
            context=exc.details or None,
        )

    @app.errorhandler(RequestError)
    def handle_request_error(exc: RequestError):
        return _error_response(exc.message, status=exc.status, code=exc.code)

    @app.errorhandler(ValueError)
    def handle_value_error(exc: ValueError):
        return _error_response(str(exc), status=400, code="invalid_request")

    # ==================== Queries ====================

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()})

    @app.route("/metrics")
    def metrics():
        deployment.metrics.treasury_balance.set(dao.treasury_balance())
        return Response(deployment.metrics.export(), mimetype=CONTENT_TYPE_LATEST)

    @app.route("/dao")
    def dao_info():
        info = dao.to_dict()
        info["token_symbol"] = deployment.token.symbol
        info["token_decimals"] = deployment.token.decimals
        return jsonify(info)

    @app.route("/proposals")
    def list_proposals():
        proposals = [p.to_dict() for p in dao.list_proposals()]
        return jsonify({"count": len(proposals), "proposals": proposals})

    @app.route("/proposals/<int:proposal_id>")
    def get_proposal(proposal_id: int):
        proposal = dao.get_proposal(proposal_id).to_dict()
        voter = request.args.get("voter")
        if voter:
            proposal["has_voted"] = dao.has_voted(proposal_id, voter)
        return jsonify({"proposal": proposal})

    @app.route("/events")
    def events():
        since = request.args.get("since", "0")
        if not since.isdigit():
            raise RequestError("since must be a non-negative integer", code="invalid_query")
        entries = [e.to_dict() for e in dao.events.since(int(since))]
        return jsonify({"count": len(entries), "events": entries})

    @app.route("/accounts")
    def list_accounts():
        return jsonify({"accounts": deployment.dev_accounts})

    @app.route("/accounts/<address>")
    def account(address: str):
        return jsonify(
            {
                "address": address.lower(),
                "balance": deployment.accounts.get_balance(address),
                "voting_power": dao.voting_power(address),
            }
        )

    # ==================== Commands ====================

    @app.route("/proposals", methods=["POST"])
    def create_proposal():
        requester = _requester()
        model: ProposalCreateInput = _parse(ProposalCreateInput)
        proposal = dao.create_proposal(model.name, model.amount, model.recipient, requester)
        return jsonify({"success": True, "proposal": proposal.to_dict()}), 201

    @app.route("/proposals/<int:proposal_id>/vote", methods=["POST"])
    def vote(proposal_id: int):
        proposal = dao.vote(proposal_id, _requester())
        return jsonify({"success": True, "proposal": proposal.to_dict()})

    @app.route("/proposals/<int:proposal_id>/finalize", methods=["POST"])
    def finalize(proposal_id: int):
        proposal = dao.finalize_proposal(proposal_id, _requester())
        return jsonify({"success": True, "proposal": proposal.to_dict()})

    @app.route("/token/transfer", methods=["POST"])
    def token_transfer():
        sender = _requester()
        model: TokenTransferInput = _parse(TokenTransferInput)
        deployment.token.transfer(sender, model.recipient, model.amount)
        return jsonify(
            {
                "success": True,
                "sender_balance": deployment.token.balance_of(sender),
                "recipient_balance": deployment.token.balance_of(model.recipient),
            }
        )

    @app.route("/treasury/deposit", methods=["POST"])
    def treasury_deposit():
        sender = _requester()
        model: TreasuryDepositInput = _parse(TreasuryDepositInput)
        deployment.treasury.deposit(sender, model.amount)
        return jsonify({"success": True, "treasury_balance": dao.treasury_balance()})

    @app.after_request
    def log_request(response: Response) -> Response:
        logger.debug(
            "%s %s -> %s",
            request.method,
            request.path,
            response.status_code,
            extra={"event": "api.request", "status": response.status_code},
        )
        return response

    return app
