import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from nerbabo.config import get_settings
from nerbabo.infrastructure.database import engine, initialize_database
from nerbabo.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializa a base de dados ao arrancar e liberta os recursos ao encerrar."""

    initialize_database()
    yield
    engine.dispose()


def create_app() -> FastAPI:
    """Cria e configura a aplicação principal de FastAPI."""

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="NERBABO Notifications", lifespan=lifespan)
    register_routes(app)
    return app


app = create_app()
