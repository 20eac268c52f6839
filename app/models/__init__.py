from app.models.user import User
from app.models.address import Address
from app.models.book import Book
from app.models.review import Review
from app.models.order_item import OrderItem
from app.models.order import Order
from app.models.gift import Gift
from app.models.summary import BookSummary

# add ALL models here
