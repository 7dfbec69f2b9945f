from models.base import Base
from models.users import User
from models.product import Product
from models.order import Order
from models.cart import Cart

# Entity name -> declarative model
MODELS = {
    "user": User,
    "product": Product,
    "order": Order,
    "cart": Cart,
}
