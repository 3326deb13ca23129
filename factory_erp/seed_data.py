# ==============================================================================
# SEED DATA
# ==============================================================================
# Records written the first time a collection file is created.
# Stored in the same JSON shape the repositories persist.
# ==============================================================================

DEFAULT_ADMIN = {
    'id': 'USR-ADMIN',
    'username': 'admin',
    'password': '123',  # hashed by UserRepository on first load
    'name': '超级管理员',
    'role': '管理员',
}

INITIAL_CUSTOMERS = [
    {
        'id': 'CUST-001',
        'name': '尚品家居有限公司',
        'contact_person': '张经理',
        'phone': '13800138000',
        'address': '上海市浦东新区康桥工业园',
    },
    {
        'id': 'CUST-002',
        'name': '蓝天贸易',
        'contact_person': '李总',
        'phone': '13912345678',
        'address': '杭州市滨江区科技大厦',
    },
    {
        'id': 'CUST-003',
        'name': '极速物流中心',
        'contact_person': '王主管',
        'phone': '13777778888',
        'address': '苏州市工业园区',
    },
    {
        'id': 'CUST-004',
        'name': '美好生活馆',
        'contact_person': '赵店长',
        'phone': '13666669999',
        'address': '南京市鼓楼区商业街',
    },
    {
        'id': 'CUST-005',
        'name': '科技园采购部',
        'contact_person': '刘主任',
        'phone': '025-88889999',
        'address': '无锡市新吴区科技园',
    },
]

INITIAL_PRODUCTS = [
    {'id': 'PROD-001', 'name': '实木餐桌 A型', 'model': 'DT-A01', 'unit_price': 500, 'unit': '张'},
    {'id': 'PROD-002', 'name': '办公椅 X200', 'model': 'OC-X200', 'unit_price': 300, 'unit': '把'},
    {'id': 'PROD-003', 'name': '重型货架', 'model': 'SR-H01', 'unit_price': 2250, 'unit': '组'},
    {'id': 'PROD-004', 'name': '简约茶几', 'model': 'CT-S05', 'unit_price': 90, 'unit': '个'},
    {'id': 'PROD-005', 'name': '升降办公桌', 'model': 'OD-L02', 'unit_price': 1500, 'unit': '张'},
]


def _single_line_order(order_id, customer, product, model, unit, qty, price,
                       status, order_date, delivery_date, materials=None, other_cost=0):
    return {
        'id': order_id,
        'customer_name': customer,
        'product_name': product,
        'quantity': qty,
        'amount': qty * price,
        'status': status,
        'order_date': order_date,
        'delivery_date': delivery_date,
        'items': [{
            'product_name': product,
            'model': model,
            'quantity': qty,
            'unit_price': price,
            'unit': unit,
            'amount': qty * price,
        }],
        'materials': materials or [],
        'other_cost': other_cost,
    }


# Seed orders carry no shipped quantities or payments; the order repository
# fills those defaults in on load.
INITIAL_ORDERS = [
    _single_line_order(
        'ORD-2023-001', '尚品家居有限公司', '实木餐桌 A型', 'DT-A01', '张', 50, 500,
        '已完成', '2023-10-01', '2023-10-15',
        materials=[
            {'id': 'm1', 'name': '橡木板材', 'quantity': 100, 'unit_price': 120, 'unit': '块'},
            {'id': 'm2', 'name': '环保清漆', 'quantity': 10, 'unit_price': 300, 'unit': '桶'},
        ],
        other_cost=2000,
    ),
    _single_line_order(
        'ORD-2023-002', '蓝天贸易', '办公椅 X200', 'OC-X200', '把', 120, 300,
        '已发货', '2023-10-10', '2023-10-25',
    ),
    _single_line_order(
        'ORD-2023-003', '极速物流中心', '重型货架', 'SR-H01', '组', 20, 2250,
        '生产中', '2023-10-20', '2023-11-05',
    ),
    _single_line_order(
        'ORD-2023-004', '美好生活馆', '简约茶几', 'CT-S05', '个', 200, 90,
        '待处理', '2023-10-26', '2023-11-15',
    ),
    _single_line_order(
        'ORD-2023-005', '科技园采购部', '升降办公桌', 'OD-L02', '张', 15, 1500,
        '待处理', '2023-10-27', '2023-11-10',
    ),
]

INITIAL_TRANSACTIONS = [
    {'id': 'TRX-001', 'date': '2023-10-01', 'description': '尚品家居订单首款',
     'amount': 10000, 'type': '收入', 'category': '销售回款'},
    {'id': 'TRX-002', 'date': '2023-10-02', 'description': '原材料采购 (木材)',
     'amount': 8500, 'type': '支出', 'category': '原材料'},
    {'id': 'TRX-003', 'date': '2023-10-05', 'description': '工厂水电费 (9月)',
     'amount': 3200, 'type': '支出', 'category': '运营成本'},
    {'id': 'TRX-004', 'date': '2023-10-15', 'description': '尚品家居订单尾款',
     'amount': 15000, 'type': '收入', 'category': '销售回款'},
    {'id': 'TRX-005', 'date': '2023-10-20', 'description': '设备维护费',
     'amount': 1200, 'type': '支出', 'category': '维修保养'},
    {'id': 'TRX-006', 'date': '2023-10-22', 'description': '蓝天贸易全款',
     'amount': 36000, 'type': '收入', 'category': '销售回款'},
]
