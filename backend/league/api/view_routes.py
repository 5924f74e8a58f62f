import json
import queue as _queue

from flask import Blueprint, Response, current_app, stream_with_context

from league.events import event_bus
from league.services.view_service import get_family, open_view
from league.api.routes import pipeline_params

views_bp = Blueprint("views", __name__)

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def _sse(payload):
    return f"data: {json.dumps(payload)}\n\n"


# ─── Synchronized views ──────────────────────────────────────────────────────

@views_bp.route("/views/<family>/stream", methods=["GET"])
def view_stream(family):
    """Push the filtered/sorted view now and again after every relevant change."""
    get_family(family)
    params = pipeline_params(family)
    keepalive = current_app.config["VIEW_STREAM_KEEPALIVE"]
    # Opened here so bad parameters fail the request instead of the stream
    view = open_view(family, **params)

    def generate():
        try:
            yield _sse({"family": family, "items": view.view})
            while True:
                if view.wait(timeout=keepalive):
                    yield _sse({"family": family, "items": view.view})
                else:
                    yield ": keepalive\n\n"
        except GeneratorExit:
            pass
        finally:
            view.close()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers=_SSE_HEADERS,
    )


# ─── Raw change feed ─────────────────────────────────────────────────────────

@views_bp.route("/events/stream", methods=["GET"])
def event_stream():
    keepalive = current_app.config["VIEW_STREAM_KEEPALIVE"]

    def generate():
        q = event_bus.subscribe()
        try:
            while True:
                try:
                    msg = q.get(timeout=keepalive)
                    yield f"data: {msg}\n\n"
                except _queue.Empty:
                    yield ": keepalive\n\n"
        except GeneratorExit:
            pass
        finally:
            event_bus.unsubscribe(q)

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers=_SSE_HEADERS,
    )
