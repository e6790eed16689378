from .catalog import Product, ContactMessage
from .orders import Order, TrackingEvent, ChatMessage
from .auth import Admin, AdminSession

__all__ = [
    'Product', 'ContactMessage',
    'Order', 'TrackingEvent', 'ChatMessage',
    'Admin', 'AdminSession',
]
