import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

# Find .env even in frozen or packaged mode
POSSIBLE_ENV_PATHS = [
    Path(__file__).resolve().parent.parent / ".env",        # normal
    Path(sys.executable).resolve().parent / ".env",         # frozen exe
    Path.cwd() / ".env",                                   # runtime cwd
]

for env_path in POSSIBLE_ENV_PATHS:
    if env_path.exists():
        load_dotenv(env_path, override=True)
        break

from billdesk.config import settings  # noqa: E402  (reads the environment loaded above)
from billdesk.credit.router import router as credit_router  # noqa: E402
from billdesk.database import DocumentStore, build_store  # noqa: E402
from billdesk.reports.router import router as reports_router  # noqa: E402
from billdesk.sales.router import router as sales_router  # noqa: E402
from billdesk.sales.terminal import TerminalRegistry  # noqa: E402
from billdesk.staff.router import router as staff_router  # noqa: E402
from billdesk.stock.inventory.router import router as inventory_router  # noqa: E402
from billdesk.stock.products.router import router as product_router  # noqa: E402

SERVER_IP = os.getenv("SERVER_IP", "127.0.0.1")

logger.add(settings.LOG_FILE, rotation=settings.LOG_ROTATION, level=settings.LOG_LEVEL)


def create_app(store: DocumentStore | None = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application startup")
        yield
        app.state.store.close()
        logger.info("Application shutdown")

    app = FastAPI(
        title="BILLDESK POS",
        description="An API for retail billing including Cart, Bills, Returns, Stock, Credit and Staff.",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.store = store if store is not None else build_store(settings.DATABASE_URL)
    app.state.terminals = TerminalRegistry(app.state.store)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # For production, change to specific domains
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(product_router, prefix="/stock/products", tags=["Stock - Products"])
    app.include_router(inventory_router, prefix="/stock/inventory", tags=["Stock - Inventory"])
    app.include_router(sales_router, prefix="/sales", tags=["Sales"])
    app.include_router(credit_router, prefix="/credit", tags=["Credit"])
    app.include_router(staff_router, prefix="/staff", tags=["Staff"])
    app.include_router(reports_router, prefix="/reports", tags=["Reports"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("billdesk.main:app", host=SERVER_IP, port=int(os.getenv("PORT", "8000")))
