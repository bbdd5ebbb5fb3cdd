# storefront/main.py

import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import models
from .core.config import settings, setup_logging
from .database import engine
from .routers import cart, discounts, favorites, newsletter, products, users

setup_logging()
logger = logging.getLogger(__name__)

# Tables are normally managed outside the app; uncomment for a quick local setup.
# models.Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Storefront back-end: catalog, cart, favorites, newsletter and discount pricing."
)

app.include_router(users.router, prefix=settings.API_V1_STR)
app.include_router(products.router, prefix=settings.API_V1_STR)
app.include_router(discounts.router, prefix=settings.API_V1_STR)
app.include_router(cart.router, prefix=settings.API_V1_STR)
app.include_router(favorites.router, prefix=settings.API_V1_STR)
app.include_router(newsletter.router, prefix=settings.API_V1_STR)

logger.info("%s ready, routes mounted under %s", settings.PROJECT_NAME, settings.API_V1_STR)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Data-access failures reach the client as a generic server error."""
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


@app.get("/")
def read_root():
    """Root endpoint; confirms the API is up."""
    return {"message": f"Welcome to the {settings.PROJECT_NAME}!"}


def run():
    """Serve the app with uvicorn (the `storefront` console script)."""
    uvicorn.run("storefront.main:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    run()
