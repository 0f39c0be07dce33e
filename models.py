from typing import List
from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Catalog product. Two products are the same product when their ids match."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    price: float = Field(..., ge=0)
    description: str
    category: str
    image: str

    def __eq__(self, other):
        if not isinstance(other, Product):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


# One line of the cart; also the persisted-cart entry shape
class CartItem(BaseModel):
    product: Product
    quantity: int = Field(..., gt=0)


class CouponRequest(BaseModel):
    code: str = ""


class CartResponse(BaseModel):
    items: List[CartItem]
    itemCount: int
    subtotal: float
    discountPercentage: float
    discount: float
    total: float
    couponCode: str
    couponMessage: str


class CheckoutReceipt(BaseModel):
    items: List[CartItem]
    itemCount: int
    subtotal: float
    discount: float
    total: float
    message: str


class OrderCountResponse(BaseModel):
    productId: int
    orderCount: int
