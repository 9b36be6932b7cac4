"""FastAPI backend for the Satellite Pass Predictor."""
