from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CONFIG
from .routes import activities as activity_routes
from .routes import babies as baby_routes
from .routes import cry as cry_routes
from .routes import reminders as reminder_routes
from .routes import tips as tip_routes

app = FastAPI(
    title="BabySense API",
    version="0.1.0",
    description="Care tracking, smart reminders and cry analysis for new parents",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(baby_routes.router)
app.include_router(activity_routes.router)
app.include_router(reminder_routes.router)
app.include_router(tip_routes.router)
app.include_router(cry_routes.router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "cry_classifier": CONFIG.cry_classifier}


@app.get("/")
async def root() -> dict:
    return {"message": "BabySense API. See /docs for endpoints."}
