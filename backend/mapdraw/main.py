# backend/mapdraw/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from mapdraw import config
from mapdraw.api.routers import pins, areas, map as map_router
from mapdraw.db import init_db

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Map Draw API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}


# 初回起動時にDBスキーマを作成
@app.on_event("startup")
def on_startup():
    init_db()

app.include_router(pins.router,       prefix="/pins",  tags=["pins"])
app.include_router(areas.router,      prefix="/areas", tags=["areas"])
app.include_router(map_router.router, prefix="/map",   tags=["map"])
