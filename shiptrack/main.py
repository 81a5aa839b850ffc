from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from shiptrack.infrastructure.config import settings
from shiptrack.infrastructure.database import Base, engine
from shiptrack.infrastructure.logging import configure_logging
from shiptrack.presentation.routers import router

configure_logging(settings.log_level, settings.log_json)

app = FastAPI(title="Shipment Event Tracker")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)
app.include_router(router)
