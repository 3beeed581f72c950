"""
routes/health.py — Liveness endpoint. No authentication, no DB access.

  GET /health → 200 {"data": {"status": "ok"}, "warnings": []}
"""

from __future__ import annotations

from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"data": {"status": "ok"}, "warnings": []}), 200
