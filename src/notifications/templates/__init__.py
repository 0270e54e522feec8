"""Template registry: maps notification kinds to template classes.

Each template knows how to render subject and body from a context dict.
"""

from notifications.templates.order_complete import OrderCompleteTemplate

ORDER_COMPLETE = "OrderComplete"

TEMPLATE_REGISTRY: dict[str, type] = {
    ORDER_COMPLETE: OrderCompleteTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification kind."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
