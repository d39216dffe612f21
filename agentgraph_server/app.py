"""FastAPI application for building and storing agent workflow graphs."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentgraph_server import connection
from agentgraph_server.catalog_routes import router as catalog_router
from agentgraph_server.db import init_all
from agentgraph_server.device_routes import router as device_router
from agentgraph_server.graph_routes import router as graph_router

from dotenv import load_dotenv
load_dotenv()  # load environment variables from .env file

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# CORS origins - configurable via environment variable
# Use comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database tables on startup."""
    init_all()
    yield


app = FastAPI(
    title="Agent Graph API",
    description="API server for defining, validating and assigning agent workflow graphs",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# include routes
app.include_router(catalog_router, prefix="/api")
app.include_router(graph_router, prefix="/api")
app.include_router(device_router, prefix="/api")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "graph_db": str(connection.GRAPH_DB_PATH),
        "endpoints": {
            "catalog": "/api/catalog",
            "workflows": "/api/workflows",
            "devices": "/api/devices/{device_id}/workflow",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
