import http
import time
from typing import Any

from .request import ApiRequest


class ResponseSink:
    """
    Collects the JSON body and status a handler produces.
    """

    def __init__(self):
        self.status_code: int | None = None
        self.body: dict[str, Any] | None = None

    def json(self, data: dict[str, Any], status: int = 200) -> None:
        self.status_code = status
        self.body = data

    @property
    def sent(self) -> bool:
        return self.status_code is not None


class ResponseFormatter:
    """
    Builds the success and error envelopes shared by every endpoint.
    """

    def __init__(self, documentation_base_url: str = "https://http.cat/status/"):
        self.documentation_base_url = documentation_base_url

    def details(self, request: ApiRequest, status_code: int) -> dict[str, Any]:
        return {
            "requested_method": request.method,
            "documentation": f"{self.documentation_base_url}{status_code}",
        }

    def metadata(self, request: ApiRequest) -> dict[str, Any]:
        return {"timestamp": int(time.time()), "endpoint": request.path}

    def format_success(
        self,
        request: ApiRequest,
        message: str,
        status_code: int = 200,
        data: Any = None,
        **extra: Any,
    ) -> dict[str, Any]:
        response = {
            "success": {
                "status": status_text(status_code),
                "code": status_code,
                "message": message,
                **extra,
                "details": self.details(request, status_code),
            },
            "error": False,
            "metadata": self.metadata(request),
        }

        if data is not None:
            response["data"] = data

        return response

    def format_error(
        self,
        request: ApiRequest,
        message: str,
        status_code: int = 400,
        **details: Any,
    ) -> dict[str, Any]:
        return {
            "success": False,
            "error": {
                "status": status_text(status_code),
                "code": status_code,
                "message": message,
                "details": {**self.details(request, status_code), **details},
            },
            "metadata": self.metadata(request),
        }


def status_text(status_code: int) -> str:
    try:
        return http.HTTPStatus(status_code).name
    except ValueError:
        return "UNKNOWN_STATUS"
