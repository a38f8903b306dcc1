"""HTTP error transport for use-case errors"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from libs.result import Error


class ClientError(Exception):
    """
    Raised by routes to turn a use-case Error into an HTTP response

    Rendered as {"error": {"code": ..., "message": ...}}.
    """

    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error.to_dict()},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClientError, client_error_handler)
