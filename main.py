import logging
import threading
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from cart_engine import CartEngine
from cart_store import JsonFileStore
from catalog_client import CatalogClient, CatalogDecodeError, CatalogNetworkError
from config import ALLOWED_ORIGINS, CART_STORE_PATH, LOG_LEVEL
from models import CartResponse, CheckoutReceipt, CouponRequest, OrderCountResponse, Product
from order_counts import FirebaseOrderCountStore

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("shoppy")

# The engine is single-threaded; sync routes run in a threadpool
cart_lock = threading.Lock()


@lru_cache
def get_order_counts() -> FirebaseOrderCountStore:
    return FirebaseOrderCountStore()


@lru_cache
def get_catalog_client() -> CatalogClient:
    return CatalogClient()


@lru_cache
def get_cart_engine() -> CartEngine:
    return CartEngine(JsonFileStore(CART_STORE_PATH), get_order_counts())


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Shoppy API...")
    yield
    logger.info("Shutting down Shoppy API...")
    if get_catalog_client.cache_info().currsize:
        get_catalog_client().close()
    if get_order_counts.cache_info().currsize:
        # let in-flight order-count increments finish
        get_order_counts().shutdown(wait=True)
        get_order_counts.cache_clear()


app = FastAPI(
    title="Shoppy Store API",
    description="Product catalog, persisted cart with coupons, and per-product order counts.",
    version="1.0.0",
    lifespan=lifespan,
)

# 🔐 CORS for the storefront client
allow_origins = [origin.strip() for origin in ALLOWED_ORIGINS.split(",")] if ALLOWED_ORIGINS else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def cart_response(engine: CartEngine) -> CartResponse:
    return CartResponse(
        items=engine.lines,
        itemCount=engine.item_count,
        subtotal=engine.subtotal,
        discountPercentage=engine.discount_percentage,
        discount=engine.discount_amount,
        total=engine.total,
        couponCode=engine.coupon_code,
        couponMessage=engine.coupon_message,
    )


# 🎯 1. CATALOG
@app.get("/api/products", response_model=List[Product])
def list_products(catalog: CatalogClient = Depends(get_catalog_client)):
    try:
        return catalog.fetch_products()
    except CatalogNetworkError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except CatalogDecodeError as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/api/products/{product_id}/orders", response_model=OrderCountResponse)
def product_order_count(product_id: int, order_counts=Depends(get_order_counts)):
    return {"productId": product_id, "orderCount": order_counts.get_order_count(product_id)}


# 🎯 2. CART
@app.get("/api/cart", response_model=CartResponse)
def get_cart(engine: CartEngine = Depends(get_cart_engine)):
    with cart_lock:
        return cart_response(engine)


@app.post("/api/cart/items", response_model=CartResponse)
def add_item(product: Product, engine: CartEngine = Depends(get_cart_engine)):
    with cart_lock:
        engine.add_to_cart(product)
        return cart_response(engine)


@app.delete("/api/cart/items/{product_id}", response_model=CartResponse)
def remove_item(product_id: int, engine: CartEngine = Depends(get_cart_engine)):
    with cart_lock:
        product = engine.product_by_id(product_id)
        if product is not None:
            engine.remove_from_cart(product)
        return cart_response(engine)


@app.delete("/api/cart/lines/{product_id}", response_model=CartResponse)
def remove_line(product_id: int, engine: CartEngine = Depends(get_cart_engine)):
    with cart_lock:
        product = engine.product_by_id(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Item not found in cart.")
        engine.remove_line(product)
        return cart_response(engine)


# 🎯 3. COUPON
@app.post("/api/cart/coupon", response_model=CartResponse)
def apply_coupon(body: CouponRequest, engine: CartEngine = Depends(get_cart_engine)):
    with cart_lock:
        engine.set_coupon_code(body.code.strip())
        engine.apply_coupon()
        return cart_response(engine)


# 🎯 4. CHECKOUT
@app.post("/api/cart/checkout", response_model=CheckoutReceipt)
def checkout(engine: CartEngine = Depends(get_cart_engine)):
    with cart_lock:
        return engine.checkout()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
