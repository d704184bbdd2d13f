"""Run the API with uvicorn."""

import uvicorn

from prospect_intel.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "prospect_intel.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
