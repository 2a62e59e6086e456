"""Flask application entry point."""

from amble import create_app


app = create_app()


def main() -> None:
    """Run the built-in development server."""
    debug = bool(app.config.get("DEBUG") or app.config.get("FLASK_DEBUG"))
    app.logger.info("Application starting...")
    app.run(host="0.0.0.0", port=5000, debug=debug)


if __name__ == "__main__":
    main()
