from __future__ import annotations

import logging

from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask.views import MethodView

from ..services.delivery import invitation_links
from ..services.draws import parse_participant_lines, run_draw
from ..services.generator import ValidationError
from ..services.stores import StoreError, get_store


logger = logging.getLogger(__name__)

public_bp = Blueprint("public", __name__)


def _rows(draw):
    return [
        {"entry": e, **invitation_links(e.name, e.contact, e.token)}
        for e in draw.entries
    ]


class LandingView(MethodView):
    def get(self):
        return render_template("landing.html", participants_text="")

    def post(self):
        text = request.form.get("participants") or ""
        try:
            result = run_draw(parse_participant_lines(text), get_store())
        except ValidationError as e:
            flash(str(e), "error")
            return render_template("landing.html", participants_text=text), 400

        if result.persisted:
            flash("Draw complete. Send each participant their link.", "success")
            return redirect(url_for("public.draw", draw_id=result.draw.id))

        # Nothing to track, but the links are still valid to hand out.
        flash("Draw complete, but it could not be saved. Send the links now; status tracking is unavailable.", "info")
        return render_template("draw.html", draw=result.draw, rows=_rows(result.draw), tracked=False)


class DrawView(MethodView):
    def get(self, draw_id: str):
        draw = get_store().find_by_id(draw_id)
        if draw is None:
            return render_template("not_found.html", message="Draw not found."), 404
        return render_template("draw.html", draw=draw, rows=_rows(draw), tracked=True)


class MarkSentView(MethodView):
    def post(self, draw_id: str, token: str):
        store = get_store()
        draw = store.find_by_id(draw_id)
        # Only tokens of the draw on this page may be marked from it
        if draw is not None and draw.entry_for(token) is not None and store.mark_sent(token):
            flash("Marked as sent.", "success")
        else:
            flash("Unknown token.", "error")
        return redirect(url_for("public.draw", draw_id=draw_id))


class ResultView(MethodView):
    def get(self, token: str):
        store = get_store()
        found = store.find_by_token(token)
        if found is None:
            return render_template("not_found.html", message="Invalid or expired link."), 404

        try:
            store.mark_opened(token)
        except StoreError:
            logger.warning("Could not mark token as opened", exc_info=True)

        return render_template("result.html", result=found)


public_bp.add_url_rule("/", view_func=LandingView.as_view("landing"), methods=["GET", "POST"])
public_bp.add_url_rule("/draws/<draw_id>", view_func=DrawView.as_view("draw"))
public_bp.add_url_rule("/draws/<draw_id>/sent/<token>", view_func=MarkSentView.as_view("mark_sent"), methods=["POST"])
public_bp.add_url_rule("/result/<token>", view_func=ResultView.as_view("result"))
