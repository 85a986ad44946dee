"""Aggregate FastAPI routers for inclusion in the application."""
from . import chat, health, public

all_routers = [
    public.router,
    chat.router,
    health.router,
]
