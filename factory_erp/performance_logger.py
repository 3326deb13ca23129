# ==============================================================================
# REQUEST / FUNCTION PROFILING
# ==============================================================================
# Times every request and the hot service functions, and reports slow ones
# to the "factory_erp.performance" logger.
#
# ENABLE/DISABLE: ERP_ENABLE_PROFILING environment variable
# ==============================================================================

import logging
import threading
import time
from collections import defaultdict
from functools import wraps

from factory_erp.config import ENABLE_PROFILING

logger = logging.getLogger("factory_erp.performance")

# Thresholds in milliseconds
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

# Human names for the log lines
ROUTE_NAMES = {
    'POST /': '登录',
    'GET /logout': '退出登录',
    'GET /dashboard': '工作台',
    'GET /orders': '订单列表',
    'POST /orders/new': '新建订单',
    'GET /orders/<order_id>': '订单详情',
    'POST /orders/<order_id>/ship': '确认发货',
    'GET /orders/<order_id>/delivery-note': '送货单',
    'GET /orders/summary': '客户对账汇总',
    'GET /finance': '财务流水',
    'POST /finance/new': '记录收支',
    'GET /analytics': '数据报表',
    'POST /analytics/ai': 'AI 分析',
    'GET /users': '用户管理',
}

# {function name: {calls, total_time, max_time}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method, path, rule=None):
    """Readable name for a route, falling back to the raw method + path."""
    for key in (f"{method} {path}", f"{method} {rule}" if rule else None):
        if key and key in ROUTE_NAMES:
            return ROUTE_NAMES[key]
    return f"{method} {path}"


# ═══════════════════════════════════════════════════════════════════════════
# FLASK HOOKS
# ═══════════════════════════════════════════════════════════════════════════

def log_request_timing(method, path, rule, time_ms, user=None):
    action = _get_route_name(method, path, rule)
    user_str = user or 'anonymous'

    if time_ms >= THRESHOLD_CRITICAL:
        logger.critical("Very slow request: %s (%s %s) user=%s %.0f ms",
                        action, method, path, user_str, time_ms)
    elif time_ms >= THRESHOLD_WARNING:
        logger.warning("Slow request: %s (%s %s) user=%s %.0f ms",
                       action, method, path, user_str, time_ms)
    else:
        logger.debug("%s (%s %s) user=%s %.0f ms", action, method, path, user_str, time_ms)


def init_profiling(app):
    """
    Register before/after request hooks on a Flask app.

    Usage:
        from factory_erp.performance_logger import init_profiling
        init_profiling(app)
    """
    if not ENABLE_PROFILING:
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time') or request.path.startswith('/static'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        rule = str(request.url_rule) if request.url_rule else request.path
        log_request_timing(request.method, request.path, rule, elapsed, session.get('username'))
        return response


# ═══════════════════════════════════════════════════════════════════════════
# DECORATOR FOR KEY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Measure a function's call count, average and max time.

    Usage:
        @profile_function
        def fn(): ...

        @profile_function(name="confirm shipment")
        def confirm_shipment(): ...
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        func_name = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms
                if elapsed_ms >= THRESHOLD_WARNING:
                    logger.warning("Slow function %s: %.0f ms", func_name, elapsed_ms)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def get_function_stats():
    """
    Returns:
        dict: {name: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2),
            }
        return result


def reset_stats():
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'ENABLE_PROFILING',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
