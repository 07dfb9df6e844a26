from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
import models  # Ensure every table is known by SQLModel for table creation
from db.session import engine
from contextlib import asynccontextmanager
from api.clock_routes import router as clock_router
from api.vehicle_routes import router as vehicle_router
from api.inspection_routes import router as inspection_router
from api.admin_booking_routes import router as admin_booking_router
from api.admin_maintenance_routes import router as admin_maintenance_router
import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file, if it exists
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Default values can be provided if the env var is not set
DEV_DOMAIN = os.getenv("DEV_DOMAIN", "http://localhost:5173")
PRODUCTION_DOMAIN = os.getenv("PRODUCTION_DOMAIN")

# Construct the list of allowed origins, always including both dev and production
allowed_origins_list = [
    DEV_DOMAIN,
    PRODUCTION_DOMAIN,
    "http://localhost:3000",  # Additional fallback for React dev
    "http://127.0.0.1:5173",  # Additional fallback for Vite dev
]

# Remove any None values and duplicates
allowed_origins_list = list(set([origin for origin in allowed_origins_list if origin]))

logger.info("CORS: Allowing origins: %s", allowed_origins_list)

# When We Start, Create the DB Tables if they don't exist
@asynccontextmanager
async def lifespan(app: FastAPI):

    SQLModel.metadata.create_all(engine)

    yield


# Starts Fast API Up; Init
app = FastAPI(title="Driver Time Clock", lifespan=lifespan)

# Allow requests from the driver app & dispatch dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Connects Routes From Clock_Routes (clock-in / out) to main app
app.include_router(clock_router, prefix="/workflow", tags=["Workflow", "Time Clock"])
app.include_router(vehicle_router, prefix="/vehicles", tags=["Vehicles"])
app.include_router(inspection_router, prefix="/inspections", tags=["Inspections"])
app.include_router(admin_booking_router, prefix="/admin/bookings", tags=["Admin", "Bookings"])
app.include_router(admin_maintenance_router, prefix="/admin/time-cards", tags=["Admin", "Time Cards"])
