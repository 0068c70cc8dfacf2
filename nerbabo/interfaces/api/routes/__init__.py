from fastapi import FastAPI

from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Regista todos os routers da API na aplicação FastAPI."""

    app.include_router(notifications_router)
