from typing import Optional


class BookstoreError(Exception):
    """Base class for business-rule failures that map onto a client error."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OrderError(BookstoreError):
    pass


class InvalidOrderItemError(OrderError):
    def __init__(self, book_id: Optional[int], reason: str = "Invalid order item data"):
        self.book_id = book_id
        if book_id is not None:
            reason = f"{reason} (book {book_id})"
        super().__init__(reason)


class BookNotFoundError(OrderError):
    status_code = 404

    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(f"Book {book_id} not found")


class InsufficientStockError(OrderError):
    def __init__(self, book_id: int, title: str, available: int, requested: int):
        self.book_id = book_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {title} (book {book_id}). "
            f"Available: {available}, Requested: {requested}"
        )


class AddressNotFoundError(OrderError):
    status_code = 404

    def __init__(self, address_id: int):
        self.address_id = address_id
        super().__init__(f"Address {address_id} not found")
