from .exceptions import InvariantViolation


def assert_dense_order(items, label="items", order_field="order"):
    """Orders must form exactly 0..n-1."""
    orders = [getattr(item, order_field) for item in items]
    if sorted(orders) != list(range(len(orders))):
        raise InvariantViolation(
            f"{label} orders are not consecutive starting from 0: {orders}"
        )
