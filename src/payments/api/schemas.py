"""Pydantic request/response schemas for the payment gateway callback API.

These are external contracts (anti-corruption layer) — separate from the
gateway port's own types.
"""

from typing import Literal

from pydantic import BaseModel


class ConfigureGatewayRequest(BaseModel):
    outcome: Literal["succeed", "cancel", "decline", "unavailable"] = "succeed"
    failure_reason: str = "Card declined"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "outcome": "decline",
                    "failure_reason": "Insufficient funds",
                }
            ]
        }
    }


class GatewayConfigResponse(BaseModel):
    gateway: str
    outcome: str
    failure_reason: str


class AuthorizationResponse(BaseModel):
    reference: str
    authorization_url: str


class StatusResponse(BaseModel):
    status: str = "ok"
