"""
Main FastAPI application.
Handles routing, middleware, and application lifecycle.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import sys

import config

formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')


# Force flush after each log
class FlushingHandler(logging.StreamHandler):
    def emit(self, record):
        super().emit(record)
        self.flush()


root_logger = logging.getLogger()
root_logger.handlers.clear()
flushing_handler = FlushingHandler(sys.stdout)
flushing_handler.setFormatter(formatter)
flushing_handler.setLevel(logging.INFO)
root_logger.addHandler(flushing_handler)
root_logger.setLevel(logging.INFO)

# Suppress httpx INFO logs (one line per Supabase API call)
logging.getLogger('httpx').setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Onboarding Tracker API",
    description="Backend API for onboarding session tracking and Google Sheets sync",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from routes import auth, onboardings, employees, sync_routes, dashboard_routes  # noqa: E402

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(onboardings.router, prefix="/api/onboardings", tags=["Onboardings"])
app.include_router(employees.router, prefix="/api/employees", tags=["Employees"])
app.include_router(sync_routes.router, prefix="/api/sync", tags=["Google Sheets Sync"])
app.include_router(dashboard_routes.router, prefix="/api/dashboard", tags=["Dashboard"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Onboarding Tracker API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    """Application startup"""
    logger.info("Onboarding Tracker API starting up...")
    logger.info(f"CORS origins: {config.settings.cors_origins}")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown"""
    logger.info("Onboarding Tracker API shutting down...")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
        access_log=True
    )
