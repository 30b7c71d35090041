from tenant_cms.extensions import db


def next_order(query, model, order_field="order"):
    """max(order) + 1 within the scoped query; 0 for an empty scope."""
    column = getattr(model, order_field)
    current = query.with_entities(db.func.max(column)).scalar()
    return 0 if current is None else current + 1


def compact_order(query, order_field="order", start=0):
    """
    Re-assigns sequential order values (start..start+N-1) for a scoped query,
    preserving the existing relative order.
    """
    entity = query.column_descriptions[0]['entity']
    items = query.order_by(
        getattr(entity, order_field).asc(),
        entity.created_at.asc(),
    ).all()

    for index, item in enumerate(items, start=start):
        if getattr(item, order_field) != index:
            setattr(item, order_field, index)

    db.session.flush()
    return items


def shift_after(query, model, position, delta, order_field="order"):
    """Adds `delta` to the order of every row in scope whose order is > position."""
    column = getattr(model, order_field)
    for item in query.filter(column > position).all():
        setattr(item, order_field, getattr(item, order_field) + delta)
    db.session.flush()


def apply_sequence(items, order_field="order"):
    """Writes 0..n-1 onto items in the given list order."""
    for index, item in enumerate(items):
        setattr(item, order_field, index)
    db.session.flush()
    return items
