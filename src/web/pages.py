# minimal server-rendered pages; the interceptor decides who reaches them
import os.path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

import db.crud as crud
from auth.tokens import Identity
from utils.pure import format_money
from web.deps import current_identity, require_admin
from web.routes_admin import add_product, load_stats
from web.routes_orders import find_order
from web.schemas import ProductIn

templates = Jinja2Templates(
    directory=os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
)
templates.env.filters["money"] = format_money

router = APIRouter(default_response_class=HTMLResponse)


def render_page(
    request: Request, template: str, title: str, identity: Identity, **context
):
    """Render ``template`` inside the shared layout with the caller's navigation."""
    return templates.TemplateResponse(
        request, template, {"title": title, "identity": identity, **context}
    )


@router.get("/")
@router.get("/welcome")
async def home(request: Request, identity: Identity = Depends(current_identity)):
    return render_page(request, "home.html", "Welcome", identity)


@router.get("/catalog")
async def catalog(request: Request, identity: Identity = Depends(current_identity)):
    products = await crud.list_products()
    return render_page(request, "catalog.html", "Catalog", identity, products=products)


@router.get("/product/{pid}")
async def product_detail(
    request: Request, pid: int, identity: Identity = Depends(current_identity)
):
    product = await crud.get_product(pid)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return render_page(request, "product.html", product.name, identity, product=product)


async def _cart_context(identity: Identity) -> dict:
    lines = await crud.list_cart(identity.subject_id)
    total = sum(line.product.price * line.quantity for line in lines)
    return {"lines": lines, "total": total}


@router.get("/cart")
async def cart_page(request: Request, identity: Identity = Depends(current_identity)):
    return render_page(request, "cart.html", "Cart", identity, **await _cart_context(identity))


@router.get("/checkout")
async def checkout_page(request: Request, identity: Identity = Depends(current_identity)):
    return render_page(
        request, "checkout.html", "Checkout", identity, **await _cart_context(identity)
    )


@router.get("/orders")
async def orders_page(request: Request, identity: Identity = Depends(current_identity)):
    orders = await crud.list_orders(identity.subject_id)
    return render_page(request, "orders.html", "Orders", identity, orders=orders)


@router.get("/orders/{order_id}")
async def order_page(
    request: Request, order_id: int, identity: Identity = Depends(current_identity)
):
    order = await find_order(order_id, identity)
    return render_page(request, "order_detail.html", f"Order #{order.id}", identity, order=order)


@router.get("/profile")
async def profile_page(request: Request, identity: Identity = Depends(current_identity)):
    return render_page(request, "profile.html", "Profile", identity)


@router.get("/dashboard")
async def dashboard_page(request: Request, identity: Identity = Depends(current_identity)):
    orders = await crud.list_orders(identity.subject_id)
    return render_page(
        request,
        "dashboard.html",
        "Dashboard",
        identity,
        orders=orders,
        spent=sum(o.total for o in orders),
    )


@router.get("/admin")
async def admin_page(request: Request, identity: Identity = Depends(current_identity)):
    stats = await load_stats()
    return render_page(request, "admin.html", "Admin", identity, stats=stats)


@router.post("/admin/products")
async def admin_add_product(
    request: Request, identity: Identity = Depends(require_admin)
):
    try:
        payload = ProductIn.model_validate(dict(await request.form()))
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.errors(include_url=False, include_context=False),
        )
    await add_product(payload, identity)
    return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/unauthorized")
async def unauthorized_page(request: Request, identity: Identity = Depends(current_identity)):
    return render_page(request, "unauthorized.html", "Access denied", identity)
