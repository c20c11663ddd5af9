from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Step1Request(_CamelModel):
    matrix_user: Optional[str] = Field(default=None, alias="matrixUser", description="Matrix user id or localpart")


class Step1Response(_CamelModel):
    success: bool = True
    message: str
    bot_username: str = Field(..., alias="botUsername")


class LinkResponse(_CamelModel):
    success: bool
    message: str
    registration_path: Optional[str] = Field(default=None, alias="registrationPath")


class StatusResponse(_CamelModel):
    config_exists: bool = Field(..., alias="configExists")
    registration_exists: bool = Field(..., alias="registrationExists")
    synapse_accessible: bool = Field(..., alias="synapseAccessible")
    registration_in_synapse: bool = Field(..., alias="registrationInSynapse")


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
