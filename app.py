import os
import logging

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

# Set up logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler()
    ]
)

# Silence verbose third-party loggers
logging.getLogger('urllib3').setLevel(logging.WARNING)
logging.getLogger('requests').setLevel(logging.WARNING)
logging.getLogger('trafilatura').setLevel(logging.WARNING)

# create the app
app = Flask(__name__)
app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # serverless hosts sit behind a proxy

app.config["APP_ENV"] = os.environ.get("APP_ENV", "production")
app.config["PORT"] = int(os.environ.get("PORT", 8080))
app.json.sort_keys = False

# Make sure to import the routes here or they won't be registered
import routes  # noqa: E402,F401
