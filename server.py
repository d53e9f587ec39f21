import sys

from hostpulse import create_app

# Create app instance for compatibility with WSGI servers
app = create_app()


def main():
    host = app.config["HOST"]
    port = app.config["PORT"]

    app.logger.info(f"Starting hostpulse on {host}:{port}")
    app.logger.info(f"Dashboard: http://localhost:{port}")
    try:
        app.run(host=host, port=port, threaded=True)
    except OSError as e:
        app.logger.critical(f"Could not listen on {host}:{port}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
