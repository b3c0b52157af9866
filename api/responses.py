from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "success", "data": jsonable_encoder(data, by_alias=True), "errors": []}
    )


def failure_response(errors: list, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "failure", "data": None, "errors": errors}
    )
