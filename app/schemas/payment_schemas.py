from pydantic import BaseModel


class CreatePaymentOrder(BaseModel):
    order_id: int


class RazorpayPaymentVerifySchema(BaseModel):
    order_id: int
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
