from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class APIResponse(BaseModel):
    """Envelope for write results and failed reads."""

    err: str | None = None
    status: bool
    data: Any = None


def failure_response(status_code: int, err: str, data: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"err": err, "status": False, "data": jsonable_encoder(data)},
    )
