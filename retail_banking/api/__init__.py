"""
Retail Banking API Application Factory
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .accounts import router as accounts_router
from .transactions import router as transactions_router
from .transfers import router as transfers_router
from .. import __version__


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Retail Banking Transfer API",
        description="Accounts, transaction history and transfers between accounts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
    app.include_router(transfers_router, prefix="/transfers", tags=["Transfers"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "retail_banking_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Retail Banking Transfer API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "accounts": "/accounts",
                "transactions": "/transactions",
                "transfers": "/transfers"
            }
        }

    return app


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "retail_banking.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
