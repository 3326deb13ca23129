# ==============================================================================
# WSGI entry point - for gunicorn in production
# ==============================================================================
#
# USAGE:
#   gunicorn wsgi:app -w 1 --threads 8 --bind 0.0.0.0:$PORT
#   (one worker process: the JSON storage lock is per process)
#
# PROJECT LAYOUT:
#   repo_root/           <- working directory (on sys.path automatically)
#   ├── wsgi.py          <- this file
#   ├── pyproject.toml
#   └── factory_erp/     <- Python package
#       ├── __init__.py
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# Absolute imports work without touching sys.path:
#   from factory_erp.main import app
# ==============================================================================

from factory_erp import config
from factory_erp.logging_config import setup_logging
from factory_erp.main import app

setup_logging(config.LOG_LEVEL, config.LOG_DIR)

# ==============================================================================
# ENTRY POINT
# ==============================================================================
# 'app' is what gunicorn serves:
#   gunicorn wsgi:app
#
# Local development:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    app.run(debug=config.DEBUG, host=config.HOST, port=config.PORT)
