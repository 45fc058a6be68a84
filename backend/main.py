from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from logging_config import setup_logging
from telemetry.singleton import get_store

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Open DuckDB off the loop before the first request needs it.
    await run_in_threadpool(get_store)
    yield


app = FastAPI(title="Viewport footprints", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
