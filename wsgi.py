import os

from dotenv import load_dotenv

load_dotenv()

from mansatask import create_app  # noqa: E402

config = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "production"))

app = create_app(config)

# celery -A wsgi.celery worker --loglevel=info
celery = app.extensions["celery"]
