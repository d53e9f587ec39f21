import os
import socket
import logging
from typing import Optional

from flask import Flask, Response, jsonify, request, send_from_directory
from prometheus_client import (
    CollectorRegistry,
    Gauge,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

from .config import Config
from .history import HistoryBuffer
from .sampler import MetricSampler
from .collector import Collector

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# (metric name, help text, value taken from the latest snapshot)
SNAPSHOT_GAUGES = [
    ("hostpulse_cpu_usage_percent", "CPU usage percent", lambda s: s.cpu_usage_percent),
    ("hostpulse_memory_used_bytes", "Memory used in bytes", lambda s: s.memory_used_bytes),
    ("hostpulse_memory_percent", "Memory usage percent", lambda s: s.memory_percent),
    ("hostpulse_disk_used_bytes", "Primary disk used in bytes", lambda s: s.disk_used_bytes),
    ("hostpulse_disk_percent", "Primary disk usage percent", lambda s: s.disk_percent),
    ("hostpulse_network_bytes_sent", "Bytes sent on all interfaces", lambda s: s.network_bytes_sent),
    ("hostpulse_network_bytes_recv", "Bytes received on all interfaces", lambda s: s.network_bytes_recv),
    ("hostpulse_uptime_seconds", "Host uptime in seconds", lambda s: s.uptime_seconds),
]


def create_app(
    config_object: object | str | None = None,
    history: Optional[HistoryBuffer] = None,
    sampler: Optional[MetricSampler] = None,
) -> Flask:
    # Static files are served by the catch-all route below, not Flask's static view
    app = Flask(__name__, static_folder=None)

    # Load default config then override with provided config object
    app.config.from_object(Config)
    if config_object:
        if isinstance(config_object, str):
            app.config.from_envvar(config_object, silent=True)
        elif isinstance(config_object, type):
            app.config.from_object(config_object)
        else:
            app.config.from_mapping(config_object)

    # Configure logging
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # The buffer is owned here and shared with both the collector and the handlers
    if history is None:
        history = HistoryBuffer(app.config["HISTORY_CAPACITY"])
    if sampler is None:
        sampler = MetricSampler(cpu_window=app.config["CPU_SAMPLE_WINDOW"])
    collector = Collector(history, sampler, interval=app.config["SAMPLE_INTERVAL"])
    app.extensions["hostpulse"] = {
        "history": history,
        "sampler": sampler,
        "collector": collector,
    }

    from .api import api_bp

    app.register_blueprint(api_bp)

    @app.before_request
    def short_circuit_preflight():
        # Answer CORS preflight for any path before routing
        if request.method == "OPTIONS":
            return Response(status=200)
        return None

    @app.after_request
    def set_headers(response):
        response.headers.update(CORS_HEADERS)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response

    @app.route("/health")
    def health_check():
        return jsonify(
            {"status": "healthy", "service": "hostpulse", "samples": len(history)}
        )

    @app.route("/metrics")
    def metrics():
        registry = CollectorRegistry()
        latest = history.latest()

        samples_g = Gauge(
            "hostpulse_history_samples",
            "Snapshots held in the history buffer",
            registry=registry,
        )
        samples_g.set(len(history))

        if latest is not None:
            hostname = latest.hostname or socket.gethostname()
            for name, doc, value in SNAPSHOT_GAUGES:
                g = Gauge(name, doc, ["hostname"], registry=registry)
                g.labels(hostname=hostname).set(value(latest))

        return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)

    web_dir = os.path.abspath(app.config["WEB_DIR"])

    # Anything not matched above falls through to a file lookup in the web directory
    @app.route("/", defaults={"filename": "index.html"})
    @app.route("/<path:filename>")
    def web_files(filename):
        return send_from_directory(web_dir, filename)

    if app.config.get("COLLECTOR_ENABLED") and not app.config.get("TESTING"):
        collector.start()

    return app


__all__ = ["create_app", "Config"]
