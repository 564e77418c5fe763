from fastapi import status

from ..core.settings import Settings
from ..http.request import ApiRequest
from ..http.response import ResponseFormatter, ResponseSink
from ..http.routing import RouteTable


class HomeController:
    """
    Welcome endpoint plus the fallbacks used by the router.
    """

    def __init__(self, settings: Settings, formatter: ResponseFormatter):
        self.settings = settings
        self.formatter = formatter

    def index(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        response.json(
            self.formatter.format_success(
                request,
                f"Welcome to {self.settings.PROJECT_NAME} REST API",
                description=self.settings.PROJECT_DESCRIPTION,
                version=self.settings.VERSION,
            )
        )

    def not_found(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        response.json(
            self.formatter.format_error(request, "Route not found", status.HTTP_404_NOT_FOUND),
            status.HTTP_404_NOT_FOUND,
        )

    def method_not_allowed(self, request: ApiRequest, response: ResponseSink, allowed_method: str) -> None:
        response.json(
            self.formatter.format_error(
                request,
                "method not allowed",
                status.HTTP_405_METHOD_NOT_ALLOWED,
                allowed_method=allowed_method,
            ),
            status.HTTP_405_METHOD_NOT_ALLOWED,
        )

    def register(self, table: RouteTable) -> None:
        table.get("/", self.index)
