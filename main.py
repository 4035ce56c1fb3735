import logging

from app import app  # noqa: F401

if __name__ == "__main__":
    port = app.config["PORT"]
    logging.info(f"Server running on port {port}")
    logging.info(f"Test with: http://localhost:{port}/search?q=python")
    app.run(host="0.0.0.0", port=port, debug=app.config["APP_ENV"] == "development")
