"""
FastAPI backend for the Satellite Pass Predictor.

Provides REST API endpoints for:
- Pass prediction from TLE data over a ground observer
- Health check
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.routers.passes import router as passes_router
from backend.schemas.passes import ErrorEnvelope, ErrorResponse
from pass_predictor import __version__
from pass_predictor.errors import PassPredictionError
from pass_predictor.utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Satellite Pass Predictor API",
    description="REST API for predicting satellite passes over a ground observer",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(passes_router)


@app.exception_handler(PassPredictionError)
async def pass_prediction_error_handler(request: Request, exc: PassPredictionError) -> JSONResponse:
    """Report precondition failures as 400 with a distinct error code."""
    logger.warning(f"{request.url.path} rejected: [{exc.code.value}] {exc.message}")
    body = ErrorResponse(error=ErrorEnvelope.from_exception(exc))
    return JSONResponse(status_code=400, content=body.model_dump(mode="json"))


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
