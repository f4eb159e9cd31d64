from . import config
from .app import create_app

# gunicorn visit_analytics.wsgi:app
app = create_app()


if __name__ == "__main__":
    # Dev mode, container uses gunicorn
    app.run(host="0.0.0.0", port=config.PORT)
