from .auth import User, SessionToken
from .tenancy import Company, Category
from .catalog import Product
from .orders import Order, OrderLine
from .notifications import Notification
from .customers import CustomerProfile, Contact
from .settings import OwnerPreference
from .security import SecurityEvent

__all__ = [
    'User', 'SessionToken',
    'Company', 'Category',
    'Product',
    'Order', 'OrderLine',
    'Notification',
    'CustomerProfile', 'Contact',
    'OwnerPreference',
    'SecurityEvent',
]
