from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web import pages, routes_admin, routes_auth, routes_cart, routes_orders, routes_products
from web.middleware import access_control


def create_app() -> FastAPI:
    app = FastAPI(title="min-commerce")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(access_control)

    app.include_router(routes_auth.router)
    app.include_router(routes_products.router)
    app.include_router(routes_cart.router)
    app.include_router(routes_orders.router)
    app.include_router(routes_admin.router)
    app.include_router(pages.router)
    return app


app = create_app()
