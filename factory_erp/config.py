# ==============================================================================
# CONFIGURATION
# ==============================================================================
# Every setting comes from the environment, with development defaults.
#
#   export ERP_SECRET_KEY="a_long_random_secret"
#   export ERP_DATA_DIR=/var/lib/factory_erp
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))


def _env_flag(name: str, default: str = '0') -> bool:
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


# ═══════════════════════════════════════════════════════════════════════════════
# SESSIONS
# ═══════════════════════════════════════════════════════════════════════════════
DEFAULT_SECRET = "factory_erp_dev_secret_key_change_in_production"
SECRET_KEY = os.environ.get("ERP_SECRET_KEY")

SESSION_CONFIG = dict(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SECURE=False,       # plain HTTP on the shop LAN
    SESSION_COOKIE_SAMESITE='Lax',
    PERMANENT_SESSION_LIFETIME=86400,  # 24 hours
)

# ═══════════════════════════════════════════════════════════════════════════════
# STORAGE
# ═══════════════════════════════════════════════════════════════════════════════
DATA_DIR = os.environ.get("ERP_DATA_DIR") or os.path.join(BASE, "data")

# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING / PROFILING
# ═══════════════════════════════════════════════════════════════════════════════
LOG_LEVEL = os.environ.get("ERP_LOG_LEVEL", "INFO")
LOG_DIR = os.environ.get("ERP_LOG_DIR") or os.path.join(BASE, "logs")
ENABLE_PROFILING = _env_flag("ERP_ENABLE_PROFILING", "1")

# ═══════════════════════════════════════════════════════════════════════════════
# AI SUMMARY (optional)
# ═══════════════════════════════════════════════════════════════════════════════
AI_API_KEY = os.environ.get("ERP_AI_API_KEY") or os.environ.get("OPENAI_API_KEY")
AI_MODEL = os.environ.get("ERP_AI_MODEL", "gpt-4o-mini")
AI_BASE_URL = os.environ.get("ERP_AI_BASE_URL") or None

# ═══════════════════════════════════════════════════════════════════════════════
# DEV SERVER
# ═══════════════════════════════════════════════════════════════════════════════
HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
PORT = int(os.environ.get('FLASK_PORT', 5000))
DEBUG = _env_flag('FLASK_DEBUG')
