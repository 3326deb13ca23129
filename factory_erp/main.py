import json
import logging
import uuid
from datetime import date
from functools import wraps

from flask import Flask, render_template, request, redirect, url_for, session, flash, g, jsonify
from werkzeug.exceptions import HTTPException

from factory_erp import config
from factory_erp.logging_config import setup_logging

# Request / function profiling
from factory_erp.performance_logger import init_profiling

# ═══════════════════════════════════════════════════════════════════════════
# DEPENDENCY CONTAINER - services and repositories
# ═══════════════════════════════════════════════════════════════════════════
# Routes only translate request -> service -> template; every business rule
# lives in services/.
# ═══════════════════════════════════════════════════════════════════════════
from factory_erp.app_container import get_container
from factory_erp.models import OrderStatus, TransactionType, UserRole, View
from factory_erp.services import (
    AccessDeniedError,
    NotFoundError,
    can_view_cost,
    has_access,
    nav_items_for,
)
from factory_erp.services.finance_service import INCOME_CATEGORIES, EXPENSE_CATEGORIES
from factory_erp.services.report_service import PERIOD_MONTH, PERIOD_QUARTER

logger = logging.getLogger(__name__)

app = Flask(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Disable with ERP_ENABLE_PROFILING=0
init_profiling(app)

# ═══════════════════════════════════════════════════════════════════════════
# SESSIONS
# ═══════════════════════════════════════════════════════════════════════════
# export ERP_SECRET_KEY="a_long_random_secret"
if not config.SECRET_KEY:
    logger.warning("ERP_SECRET_KEY is not set, using the development key")

app.secret_key = config.SECRET_KEY or config.DEFAULT_SECRET
app.config.update(**config.SESSION_CONFIG)
app.config['DATA_DIR'] = config.DATA_DIR


def container():
    return get_container(app.config['DATA_DIR'])


def format_money(amount):
    try:
        return f"¥{float(amount or 0):,.2f}"
    except (TypeError, ValueError):
        return "¥0.00"


app.jinja_env.filters['money'] = format_money


def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


# ═══════════════════════════════════════════════════════════════════════════
# AUTH DECORATORS
# ═══════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        user = container().user_service.get_session_user(session.get("user_id"))
        if user is None:
            # Missing session, or the account was deleted meanwhile
            session.clear()
            if request.path.startswith('/api/'):
                return {"ok": False, "error": "未登录"}, 401
            flash("请先登录。", "warning")
            return redirect(url_for("login"))
        g.user = user
        return f(*args, **kwargs)
    return wrapper


def view_required(view):
    """Requires the current role to have access to `view` (use after login_required)."""
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not has_access(g.user.role, view):
                logger.info("Access to %s denied for %s (%s)",
                            view.value, g.user.username, g.user.role.value)
                if request.path.startswith('/api/'):
                    return {"ok": False, "error": "权限不足"}, 403
                flash("权限不足，无法访问该页面。", "danger")
                return redirect(url_for("dashboard"))
            return f(*args, **kwargs)
        return wrapper
    return deco


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


@app.context_processor
def inject_globals():
    user = getattr(g, 'user', None)
    return {
        'csrf_token': generate_csrf_token(),
        'current_user': user,
        'nav_items': nav_items_for(user.role) if user else [],
        'show_cost': can_view_cost(user.role) if user else False,
        'active_view': getattr(g, 'active_view', None),
    }


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method == 'POST':
            token = session.get('csrf_token')
            form_token = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not form_token and request.is_json:
                json_data = request.get_json(silent=True) or {}
                form_token = json_data.get('csrf_token')

            if not token or not form_token or token != form_token:
                if request.path.startswith('/api/'):
                    return {"ok": False, "error": "CSRF token 无效"}, 403
                flash('会话已过期，请重试。', 'warning')
                if 'user_id' not in session:
                    return redirect(url_for('login'))
                return redirect(url_for('dashboard'))
        return f(*args, **kwargs)
    return wrapper


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS only behind real HTTPS
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# ERROR HANDLERS
# ═══════════════════════════════════════════════════════════════════════════

def _render_error(title, message, status):
    user = getattr(g, 'user', None)
    return render_template(
        "error.html",
        title=title,
        message=message,
        can_reset=bool(user and user.is_admin()),
    ), status


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return _render_error("未找到", f"{e.entity_id} 不存在或已被删除。", 404)


@app.errorhandler(AccessDeniedError)
def handle_access_denied(e):
    return _render_error("权限不足", str(e) or "您没有执行该操作的权限。", 403)


@app.errorhandler(Exception)
def handle_exception(e):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return _render_error("系统遇到了一些问题", "页面加载出错，请刷新重试。如果问题持续存在，管理员可以重置系统数据。", 500)


# ═══════════════════════════════════════════════════════════════════════════
# LOGIN / LOGOUT
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/", methods=["GET", "POST"])
@verify_csrf
def login():
    if request.method == "POST":
        username = (request.form.get("username") or "").strip()
        password = request.form.get("password") or ""
        if not username or not password:
            flash("请输入用户名和密码。", "warning")
            return redirect(url_for("login"))

        user = container().user_service.authenticate(username, password)
        if user is None:
            flash("用户名或密码错误", "danger")
            return redirect(url_for("login"))

        session.permanent = True
        session["user_id"] = user.id
        session["username"] = user.username
        flash(f"欢迎回来，{user.name}。", "success")
        return redirect(url_for("dashboard"))

    if container().user_service.get_session_user(session.get("user_id")):
        return redirect(url_for("dashboard"))
    return render_template("login.html")


@app.route("/logout")
@login_required
def logout():
    logger.info("User %s logged out", g.user.username)
    session.clear()
    flash("已退出登录。", "info")
    return redirect(url_for("login"))


# ═══════════════════════════════════════════════════════════════════════════
# DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/dashboard")
@login_required
def dashboard():
    g.active_view = View.DASHBOARD.value
    widgets = container().dashboard_service.widgets_for(g.user)
    return render_template(
        "dashboard.html",
        visible=widgets['visible'],
        hidden=widgets['hidden'],
        editing=request.args.get('edit') == '1',
    )


@app.route("/dashboard/move", methods=["POST"])
@login_required
@verify_csrf
def dashboard_move():
    container().dashboard_service.move_widget(
        g.user,
        to_int(request.form.get('from_index'), -1),
        to_int(request.form.get('to_index'), -1),
    )
    return redirect(url_for("dashboard", edit=1))


@app.route("/dashboard/visibility", methods=["POST"])
@login_required
@verify_csrf
def dashboard_visibility():
    visible = request.form.get('visible') == '1'
    container().dashboard_service.set_visibility(g.user, request.form.get('widget_id', ''), visible)
    return redirect(url_for("dashboard", edit=1))


# ═══════════════════════════════════════════════════════════════════════════
# ORDERS
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/orders")
@login_required
@view_required(View.ORDERS)
def orders():
    g.active_view = View.ORDERS.value
    c = container()
    term = request.args.get('q', '')
    status = request.args.get('status', 'ALL')
    rows = [
        {'order': o, 'summary': c.order_service.row_summary(o)}
        for o in c.order_service.filter_orders(term, status)
    ]
    return render_template(
        "orders.html",
        rows=rows,
        q=term,
        status=status,
        statuses=list(OrderStatus),
        customers=c.customer_service.get_all(),
        products=c.product_service.get_all(),
        today=date.today().isoformat(),
    )


@app.route("/orders/new", methods=["POST"])
@login_required
@view_required(View.ORDERS)
@verify_csrf
def order_new():
    try:
        items = json.loads(request.form.get('items') or '[]')
    except json.JSONDecodeError:
        flash("订单明细格式无效", "danger")
        return redirect(url_for("orders"))

    result = container().order_service.create_order(
        customer_name=request.form.get('customer_name', ''),
        items=items if isinstance(items, list) else [],
        delivery_date=request.form.get('delivery_date', ''),
        order_date=request.form.get('order_date') or None,
        order_id=request.form.get('order_id', ''),
    )
    if not result['ok']:
        flash(result['error'], "danger")
        return redirect(url_for("orders"))
    flash(f"订单 {result['order'].id} 已创建。", "success")
    return redirect(url_for("order_detail", order_id=result['order'].id))


@app.route("/orders/summary")
@login_required
@view_required(View.ORDERS)
def order_summary():
    g.active_view = View.ORDERS.value
    c = container()
    today = date.today()
    period_type = request.args.get('period', PERIOD_MONTH)
    if period_type not in (PERIOD_MONTH, PERIOD_QUARTER):
        period_type = PERIOD_MONTH
    year = to_int(request.args.get('year'), today.year)
    value = to_int(request.args.get('value'), 1)
    customer = request.args.get('customer', '')

    report = c.report_service.period_summary(customer, year, period_type, value)
    return render_template(
        "order_summary.html",
        report=report,
        customers=c.order_service.known_customers(),
        years=c.report_service.year_options(today),
        customer=customer,
        year=year,
        period_type=period_type,
        value=value,
    )


@app.route("/orders/<order_id>")
@login_required
@view_required(View.ORDERS)
def order_detail(order_id):
    g.active_view = View.ORDERS.value
    c = container()
    order = c.order_service.get_order(order_id)
    show_cost = can_view_cost(g.user.role)
    return render_template(
        "order_detail.html",
        order=order,
        statuses=list(OrderStatus),
        costs=c.order_service.cost_summary(order) if show_cost else None,
        transactions=c.order_service.order_transactions(order.id),
        summary=c.order_service.row_summary(order),
    )


@app.route("/orders/<order_id>/status", methods=["POST"])
@login_required
@view_required(View.ORDERS)
@verify_csrf
def order_status(order_id):
    result = container().order_service.change_status(order_id, request.form.get('status', ''))
    if not result['ok']:
        flash(result['error'], "danger")
    return redirect(url_for("order_detail", order_id=order_id))


@app.route("/orders/<order_id>/details", methods=["POST"])
@login_required
@view_required(View.ORDERS)
@verify_csrf
def order_details(order_id):
    other_cost = request.form.get('other_cost') if can_view_cost(g.user.role) else None
    result = container().order_service.update_details(
        order_id,
        delivery_date=request.form.get('delivery_date'),
        other_cost=other_cost,
    )
    if result['ok']:
        flash("订单信息已保存。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("order_detail", order_id=order_id))


@app.route("/orders/<order_id>/materials", methods=["POST"])
@login_required
@view_required(View.ORDERS)
@verify_csrf
def order_material_add(order_id):
    if not can_view_cost(g.user.role):
        raise AccessDeniedError("销售角色无法编辑物料成本。")
    result = container().order_service.add_material(
        order_id,
        name=request.form.get('name', ''),
        quantity=request.form.get('quantity', 1),
        unit_price=request.form.get('unit_price', 0),
        unit=request.form.get('unit', '个'),
    )
    if not result['ok']:
        flash(result['error'], "danger")
    return redirect(url_for("order_detail", order_id=order_id))


@app.route("/orders/<order_id>/materials/<material_id>/delete", methods=["POST"])
@login_required
@view_required(View.ORDERS)
@verify_csrf
def order_material_delete(order_id, material_id):
    if not can_view_cost(g.user.role):
        raise AccessDeniedError("销售角色无法编辑物料成本。")
    result = container().order_service.remove_material(order_id, material_id)
    if not result['ok']:
        flash(result['error'], "danger")
    return redirect(url_for("order_detail", order_id=order_id))


@app.route("/orders/<order_id>/ship", methods=["GET", "POST"])
@login_required
@view_required(View.ORDERS)
@verify_csrf
def order_ship(order_id):
    g.active_view = View.ORDERS.value
    c = container()
    order = c.order_service.get_order(order_id)

    if request.method == "POST":
        quantities = {
            idx: request.form.get(f'qty_{idx}', 0)
            for idx in range(len(order.items))
        }
        result = c.order_service.confirm_shipment(order_id, quantities)
        if not result['ok']:
            flash(result['error'], "danger")
            return redirect(url_for("order_ship", order_id=order_id))
        # Post/redirect/get: a refresh of the note must not ship again
        session['delivery_note'] = {
            'order_id': order_id,
            'quantities': {str(idx): qty for idx, qty in result['quantities'].items()},
        }
        flash("发货已确认，送货单已生成。", "success")
        return redirect(url_for("order_delivery_note", order_id=order_id))

    return render_template(
        "ship.html",
        order=order,
        plan=c.order_service.shipment_plan(order),
    )


@app.route("/orders/<order_id>/delivery-note")
@login_required
@view_required(View.ORDERS)
def order_delivery_note(order_id):
    """Printable note of the last shipment confirmed in this session."""
    g.active_view = View.ORDERS.value
    c = container()
    order = c.order_service.get_order(order_id)
    last = session.get('delivery_note') or {}
    if last.get('order_id') != order_id:
        flash("没有可打印的送货单，请先确认发货。", "warning")
        return redirect(url_for("order_detail", order_id=order_id))
    lines = c.order_service.shipment_lines(order, last.get('quantities', {}))
    return render_template("delivery_note.html", note=c.order_service.delivery_note(order, lines))


# ═══════════════════════════════════════════════════════════════════════════
# FINANCE
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/finance")
@login_required
@view_required(View.FINANCE)
def finance():
    g.active_view = View.FINANCE.value
    c = container()
    type_filter = request.args.get('type', 'ALL')
    entries = [
        {'tx': t, 'order': c.finance_service.linked_order(t)}
        for t in c.finance_service.list_transactions(type_filter)
    ]
    return render_template(
        "finance.html",
        entries=entries,
        type_filter=type_filter,
        types=list(TransactionType),
        unpaid_orders=c.finance_service.unpaid_orders(),
        income_categories=INCOME_CATEGORIES,
        expense_categories=EXPENSE_CATEGORIES,
        today=date.today().isoformat(),
    )


@app.route("/finance/new", methods=["POST"])
@login_required
@view_required(View.FINANCE)
@verify_csrf
def finance_new():
    result = container().finance_service.add_transaction(
        tx_date=request.form.get('date', ''),
        description=request.form.get('description', ''),
        amount=request.form.get('amount'),
        tx_type=request.form.get('type', ''),
        category=request.form.get('category', ''),
        related_order_id=request.form.get('related_order_id'),
    )
    if result['ok']:
        flash("收支记录已保存。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("finance"))


# ═══════════════════════════════════════════════════════════════════════════
# ANALYTICS
# ═══════════════════════════════════════════════════════════════════════════

def _render_analytics(ai_result=None, ai_context=None):
    g.active_view = View.ANALYTICS.value
    return render_template(
        "analytics.html",
        data=container().analytics_service.summary(),
        ai_result=ai_result,
        ai_context=ai_context,
    )


@app.route("/analytics")
@login_required
@view_required(View.ANALYTICS)
def analytics():
    return _render_analytics()


@app.route("/analytics/ai", methods=["POST"])
@login_required
@view_required(View.ANALYTICS)
@verify_csrf
def analytics_ai():
    c = container()
    context = request.form.get('context', 'FINANCE')
    if context not in ('FINANCE', 'OPERATIONS'):
        context = 'FINANCE'
    text = c.ai_service.analyze_business_data(
        c.order_repo.load(), c.transaction_repo.load(), context)
    return _render_analytics(ai_result=text, ai_context=context)


@app.route("/api/analytics")
@login_required
@view_required(View.ANALYTICS)
def api_analytics():
    return jsonify({"ok": True, **container().analytics_service.summary()})


# ═══════════════════════════════════════════════════════════════════════════
# CUSTOMERS / PRODUCTS
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/customers")
@login_required
@view_required(View.CUSTOMERS)
def customers():
    g.active_view = View.CUSTOMERS.value
    term = request.args.get('q', '')
    return render_template(
        "customers.html",
        customers=container().customer_service.search(term),
        q=term,
    )


@app.route("/customers/new", methods=["POST"])
@login_required
@view_required(View.CUSTOMERS)
@verify_csrf
def customer_new():
    result = container().customer_service.add_customer(
        name=request.form.get('name', ''),
        contact_person=request.form.get('contact_person', ''),
        phone=request.form.get('phone', ''),
        address=request.form.get('address', ''),
    )
    if result['ok']:
        flash(f"客户 {result['customer'].name} 已添加。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("customers"))


@app.route("/products")
@login_required
@view_required(View.PRODUCTS)
def products():
    g.active_view = View.PRODUCTS.value
    term = request.args.get('q', '')
    return render_template(
        "products.html",
        products=container().product_service.search(term),
        q=term,
    )


@app.route("/products/new", methods=["POST"])
@login_required
@view_required(View.PRODUCTS)
@verify_csrf
def product_new():
    result = container().product_service.add_product(
        name=request.form.get('name', ''),
        model=request.form.get('model', ''),
        unit_price=request.form.get('unit_price', 0),
        unit=request.form.get('unit', '件'),
    )
    if result['ok']:
        flash(f"产品 {result['product'].name} 已添加。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("products"))


# ═══════════════════════════════════════════════════════════════════════════
# USERS (administrators only)
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/users")
@login_required
@view_required(View.USERS)
def users():
    g.active_view = View.USERS.value
    return render_template(
        "users.html",
        users=container().user_service.get_all_users(),
        roles=list(UserRole),
    )


@app.route("/users/new", methods=["POST"])
@login_required
@view_required(View.USERS)
@verify_csrf
def user_new():
    result = container().user_service.add_user(
        name=request.form.get('name', ''),
        username=request.form.get('username', ''),
        password=request.form.get('password', ''),
        role=request.form.get('role', ''),
    )
    if result['ok']:
        flash(f"用户 {result['user'].username} 已创建。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("users"))


@app.route("/users/<user_id>/edit", methods=["POST"])
@login_required
@view_required(View.USERS)
@verify_csrf
def user_edit(user_id):
    result = container().user_service.update_user(
        user_id,
        name=request.form.get('name', ''),
        username=request.form.get('username', ''),
        role=request.form.get('role', ''),
        password=request.form.get('password', ''),
    )
    if result['ok']:
        if user_id == g.user.id:
            session["username"] = result['user'].username
        flash("用户信息已更新。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("users"))


@app.route("/users/<user_id>/delete", methods=["POST"])
@login_required
@view_required(View.USERS)
@verify_csrf
def user_delete(user_id):
    result = container().user_service.delete_user(user_id, g.user.id)
    if result['ok']:
        flash(f"用户 {result['user'].username} 已删除。", "success")
    else:
        flash(result['error'], "danger")
    return redirect(url_for("users"))


# ═══════════════════════════════════════════════════════════════════════════
# SYSTEM
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/system/reset", methods=["POST"])
@login_required
@verify_csrf
def system_reset():
    if not g.user.is_admin():
        raise AccessDeniedError("只有管理员可以重置系统数据。")
    logger.warning("System data reset requested by %s", g.user.username)
    container().reset_all_data()
    session.clear()
    flash("系统数据已重置，请重新登录。", "info")
    return redirect(url_for("login"))


if __name__ == "__main__":
    # Local development server; use wsgi.py behind gunicorn in production
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)
    if not config.DEBUG:
        logger.info("Server started on http://%s:%s", config.HOST, config.PORT)
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
