# file: main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging
import os

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

from app.controllers.weather_notifications import router as weather_notifications_router
from app.database.connection import get_sync_controller

app = FastAPI(title="Weather Admin API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    weather_notifications_router,
    prefix="/api/weather-notifications",
    tags=["weather-notifications"],
)


@app.get("/")
async def root():
    return {"message": "Weather Admin API is running"}


@app.on_event("startup")
async def startup_event():
    # Fetch on load, as the admin screen does when it opens
    await get_sync_controller().refresh()
