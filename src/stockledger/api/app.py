"""FastAPI application factory for the StockLedger.

The factory does not initialize the domain; callers run ``stockledger.init()``
first (see ``src/app.py``), so that importing this module during domain
discovery has no side effects.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockledger.api.routes import stock_router
from stockledger.domain import stockledger
from stockledger.utils.logging import add_context, clear_context


def create_app() -> FastAPI:
    app = FastAPI(
        title="StockLedger API",
        description="Per-variant stock buckets, transfers and audit trail",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the StockLedger domain context for every request."""
        add_context(method=request.method, path=request.url.path)
        try:
            with stockledger.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response

    app.include_router(stock_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": {"name": stockledger.name}})

    return app
