"""
Registre central des routers (API v1, admin, health).
"""
from fastapi import FastAPI
from notestore.auth.views import api_router as auth_api_router
from notestore.users.views import api_router as users_api_router
from notestore.catalog import views as catalog_views
from notestore.delivery import views as delivery_views
from notestore.checkout import views as checkout_views
from notestore.payments import views as payments_views
from notestore.sellers import views as sellers_views
from notestore.assistant import views as assistant_views
from notestore.admin.views import router as admin_router
from notestore.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    # API v1
    app.include_router(auth_api_router)
    app.include_router(catalog_views.router)
    app.include_router(delivery_views.router)
    app.include_router(checkout_views.router)
    app.include_router(payments_views.router)
    app.include_router(users_api_router)
    app.include_router(sellers_views.router)
    app.include_router(assistant_views.router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
