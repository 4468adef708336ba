from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask.views import MethodView

from ..services.delivery import invitation_links
from ..services.draws import run_draw
from ..services.generator import ValidationError
from ..services.stores import StoreError, get_store


logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _iso(value):
    return value.isoformat() if value is not None else None


def _not_found(message: str):
    return jsonify({"error": message}), 404


@api_bp.errorhandler(ValidationError)
def handle_validation_error(e: ValidationError):
    return jsonify({"error": str(e)}), 400


class DrawCollectionView(MethodView):
    def post(self):
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not isinstance(body.get("participants"), list):
            raise ValidationError("Invalid participant list.")

        result = run_draw(body["participants"], get_store())
        draw = result.draw
        return jsonify({
            "draw_id": draw.id,
            "created_at": _iso(draw.created_at),
            "persisted": result.persisted,
            # Assignees stay out of the organizer's response
            "tokens": [
                {
                    "participant": e.name,
                    "contact": e.contact,
                    "token": e.token,
                    **invitation_links(e.name, e.contact, e.token),
                }
                for e in draw.entries
            ],
        }), 201


class DrawDetailView(MethodView):
    def get(self, draw_id: str):
        draw = get_store().find_by_id(draw_id)
        if draw is None:
            return _not_found("Draw not found.")

        return jsonify({
            "draw_id": draw.id,
            "created_at": _iso(draw.created_at),
            "tokens": [
                {
                    "participant": e.name,
                    "contact": e.contact,
                    "token": e.token,
                    "sent": e.sent,
                    "sent_at": _iso(e.sent_at),
                    "opened": e.opened,
                    "opened_at": _iso(e.opened_at),
                }
                for e in draw.entries
            ],
        })


class ResultView(MethodView):
    def get(self, token: str):
        store = get_store()
        found = store.find_by_token(token)
        if found is None:
            return _not_found("Invalid or expired token.")

        try:
            store.mark_opened(token)
        except StoreError:
            logger.warning("Could not mark token as opened", exc_info=True)

        return jsonify({"participant": found.participant, "assignee": found.assignee})


class TokenSentView(MethodView):
    def post(self, token: str):
        if not get_store().mark_sent(token):
            return _not_found("Token not found.")
        return jsonify({"ok": True})


api_bp.add_url_rule("/draws", view_func=DrawCollectionView.as_view("draws"), methods=["POST"])
api_bp.add_url_rule("/draws/<draw_id>", view_func=DrawDetailView.as_view("draw_detail"))
api_bp.add_url_rule("/results/<token>", view_func=ResultView.as_view("result"))
api_bp.add_url_rule("/tokens/<token>/sent", view_func=TokenSentView.as_view("token_sent"), methods=["POST"])
