"""Pass prediction response schemas."""

import math
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from pass_predictor.errors import ErrorCode, PassPredictionError
from pass_predictor.passes import Pass, PassSearchResult


class PassResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    aos: str
    los: str
    max_elevation_deg: float = Field(alias="maxElevationDeg")
    max_elevation_time: str = Field(alias="maxElevationTime")
    azimuth_at_max: float = Field(alias="azimuthAtMax")
    duration_seconds: float = Field(alias="durationSeconds")
    aos_azimuth_deg: float = Field(alias="aosAzimuthDeg")
    los_azimuth_deg: float = Field(alias="losAzimuthDeg")
    range_at_max_km: float = Field(alias="rangeAtMaxKm")
    truncated_start: bool = Field(False, alias="truncatedStart")
    truncated_end: bool = Field(False, alias="truncatedEnd")
    truncated: bool = False

    @classmethod
    def from_pass(cls, pass_: Pass) -> "PassResponse":
        # Same rounding as the CLI output
        return cls(**pass_.to_dict())


class PassSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    passes: List[PassResponse]
    pass_count: int = Field(alias="passCount")
    truncated: bool

    @classmethod
    def from_result(cls, result: PassSearchResult) -> "PassSearchResponse":
        return cls(
            passes=[PassResponse.from_pass(p) for p in result.passes],
            pass_count=result.pass_count,
            truncated=result.truncated,
        )


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    code: ErrorCode
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, error: PassPredictionError) -> "ErrorEnvelope":
        # JSON has no NaN/Infinity
        details = {
            key: str(value) if isinstance(value, float) and not math.isfinite(value) else value
            for key, value in error.details.items()
        }
        return cls(code=error.code, message=error.message, details=details)


class ErrorResponse(BaseModel):
    error: ErrorEnvelope
