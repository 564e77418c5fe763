from typing import Any

from fastapi import status

from ..http.request import ApiRequest
from ..http.response import ResponseFormatter, ResponseSink
from ..http.routing import RouteTable
from .service import ErrorKind, ServiceResult, UserService

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PERSISTENCE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.USER_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.SESSION_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.REFRESH_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.RANDOMNESS: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class UserController:
    """
    HTTP handlers for the /users endpoints.
    """

    def __init__(self, service: UserService, formatter: ResponseFormatter):
        self.service = service
        self.formatter = formatter

    def store(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        """
        Register a new account.
        """
        result = self.service.create(request.body)
        self._respond(request, response, result, success_status=status.HTTP_201_CREATED)

    def login(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        """
        Exchange email and password for a token.
        """
        result = self.service.auth(request.body)
        self._respond(request, response, result, data=self._token_data(result))

    def refresh(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        """
        Rotate the bearer token into a fresh one.
        """
        result = self.service.refresh(request.authorization())
        self._respond(request, response, result, data=self._token_data(result))

    def fetch(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        """
        Profile of the bearer token's subject.
        """
        result = self.service.fetch(request.authorization())
        self._respond(request, response, result, data=result.data)

    def update(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        result = self.service.update(request.authorization(), request.body)
        self._respond(request, response, result)

    def delete(self, request: ApiRequest, response: ResponseSink, *args: str) -> None:
        result = self.service.delete(request.authorization())
        self._respond(request, response, result)

    def register(self, table: RouteTable) -> None:
        def users(group: RouteTable) -> None:
            group.post("/create", self.store)
            group.post("/login", self.login)
            group.post("/refresh", self.refresh)
            group.get("/fetch", self.fetch)
            group.put("/update", self.update)
            group.delete("/delete", self.delete)

        table.group("/users", users)

    @staticmethod
    def _token_data(result: ServiceResult) -> dict[str, Any] | None:
        if result.token is None:
            return None
        return {"token": result.token}

    def _respond(
        self,
        request: ApiRequest,
        response: ResponseSink,
        result: ServiceResult,
        success_status: int = status.HTTP_200_OK,
        data: Any = None,
    ) -> None:
        if not result.ok:
            code = ERROR_STATUS[result.error]
            response.json(self.formatter.format_error(request, result.message, code), code)
            return

        response.json(
            self.formatter.format_success(request, result.message, success_status, data=data),
            success_status,
        )
