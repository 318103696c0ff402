"""Version 1 API routers."""

from fastapi import APIRouter

from . import admin, checkout, me, programs, webhooks_stripe

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(programs.router)
api_v1.include_router(checkout.router)
api_v1.include_router(me.router)
api_v1.include_router(admin.router)
api_v1.include_router(webhooks_stripe.router)
