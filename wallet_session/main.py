from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, wallet
from .config import settings
from .core.session import WalletSessionManager, create_session_manager
from .middleware import RequestLoggingMiddleware


SessionFactory = Callable[[], WalletSessionManager]


def create_app(session_factory: Optional[SessionFactory] = None) -> FastAPI:
    """Build the API; the session manager lives for the lifetime of the app."""

    factory = session_factory or create_session_manager

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = factory()
        await manager.start()
        app.state.wallet_session = manager
        try:
            yield
        finally:
            await manager.close()
            if manager.provider is not None:
                await manager.provider.aclose()

    app = FastAPI(
        title="Wallet Session API",
        description="Connects to a signing provider and exposes the wallet session",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["content-type", "x-request-id"],
        expose_headers=["x-request-id"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(wallet.router, tags=["Wallet"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Wallet Session API",
            "version": "0.1.0",
            "description": "Connects to a signing provider and exposes the wallet session",
            "docs": "/docs",
            "health": "/healthz"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from .logging_config import setup_logging

    setup_logging()
    uvicorn.run(
        "wallet_session.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
