import logging

from flask import Blueprint, Response, current_app, jsonify, request

from .devices import DeviceQueryError, list_disks, list_network
from .history import HistoryBuffer

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def get_history() -> HistoryBuffer:
    return current_app.extensions["hostpulse"]["history"]


@api_bp.errorhandler(DeviceQueryError)
def handle_device_query_error(err):
    logger.error(f"Device query failed for {request.path}: {err}")
    return Response(str(err), status=500, mimetype="text/plain")


@api_bp.route("/system")
def system():
    """Return the buffered snapshots as a JSON array, oldest first.

    Query params:
      - minutes (int, optional): only return the last N minutes, capped to the
        retention window
    """
    history = get_history()
    minutes_param = request.args.get("minutes")
    try:
        minutes = int(minutes_param) if minutes_param is not None else None
    except ValueError:
        minutes = None

    if minutes is None:
        snapshots = history.snapshot()
    else:
        interval = float(current_app.config.get("SAMPLE_INTERVAL", 1))
        max_minutes = max(1, int(history.capacity * interval // 60))
        minutes = min(max(minutes, 1), max_minutes)
        snapshots = history.window(minutes * 60)

    return jsonify([s.to_dict() for s in snapshots])


@api_bp.route("/system/latest")
def system_latest():
    latest = get_history().latest()
    return jsonify(latest.to_dict() if latest is not None else None)


@api_bp.route("/disks")
def disks():
    return jsonify([d.to_dict() for d in list_disks()])


@api_bp.route("/network")
def network():
    return jsonify([n.to_dict() for n in list_network()])
