from . import crud_cart, crud_discount, crud_favorite, crud_newsletter, crud_product, crud_user
from .crud_cart import cart
from .crud_discount import discount
from .crud_newsletter import newsletter
from .crud_user import user
