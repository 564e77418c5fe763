from .home.router import HomeController
from .http.routing import Router, RouteTable
from .users.router import UserController


def build_router(home: HomeController, users: UserController) -> Router:
    """
    Registers every endpoint in order:

        GET    /               welcome
        POST   /users/create   register
        POST   /users/login    login
        POST   /users/refresh  refresh
        GET    /users/fetch    fetch
        PUT    /users/update   update
        DELETE /users/delete   delete
    """
    table = RouteTable()
    home.register(table)
    users.register(table)
    return table.build(not_found=home.not_found, method_not_allowed=home.method_not_allowed)
