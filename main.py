import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger

from uvote.config import APPNAME, VERSION, CORS_ORIGINS, CREATE_TABLES, LOG_LEVEL
from uvote.database import database
from uvote.routers import (users_router, elections_router, candidates_router,
                           voting_router, results_router, discussions_router)

# One sink at the configured level
logger.remove()
logger.add(sys.stderr, level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if CREATE_TABLES:
        database.create_tables()
    logger.info(f"{APPNAME} {VERSION} started")
    yield


# Defining the application
app = FastAPI(
    title=APPNAME,
    version=VERSION,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router)
app.include_router(elections_router)
app.include_router(candidates_router)
app.include_router(voting_router)
app.include_router(results_router)
app.include_router(discussions_router)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "status": 500, "message": "Internal server error.", "data": None},
    )


@app.get("/")
def main_function():
    """
    Redirect to documentation (`/docs/`).
    """
    return RedirectResponse(url="/docs/")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=5001)
