import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.routers import packing, session
from app.config import settings, cloud_config

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title="Packing Assistant API",
    version="0.1.0",
    description="AI-generated packing lists for planned trips"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if not cloud_config.IS_CLOUD_RUN else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(session.router, prefix="/api/v1")
app.include_router(packing.router, prefix="/api/v1")

@app.get("/health")
def health_check():
    """Health check endpoint for Cloud Run and monitoring"""
    return {
        "status": "ok",
        "message": "Packing Assistant API is running",
        "environment": "cloud-run" if cloud_config.IS_CLOUD_RUN else "local",
        "storage": settings.storage_backend,
        "model": settings.gemini_model,
    }

@app.get("/")
def root():
    """Root endpoint with API information"""
    return {
        "name": "Packing Assistant API",
        "version": "0.1.0",
        "docs_url": "/docs",
        "health_url": "/health"
    }

# For Cloud Run, the port is set via environment variable
if __name__ == "__main__":
    import uvicorn
    port = cloud_config.PORT if cloud_config.IS_CLOUD_RUN else settings.port
    uvicorn.run(app, host="0.0.0.0", port=port)
