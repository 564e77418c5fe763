import getpass
import json

import typer

from phastauth_cli.core.api import (
    api_delete,
    api_fetch,
    api_login,
    api_refresh,
    api_register,
    api_update,
    is_success,
    message_of,
)
from phastauth_cli.core.session import clear_token, is_logged_in, load_token, save_token
from phastauth_cli.core.utils import validate_password


app = typer.Typer(help="Account commands (register, login, refresh, whoami, update, delete)")


def _require_token() -> str:
    token = load_token()
    if token is None:
        typer.echo("No active session. Login first.")
        raise typer.Exit(code=1)
    return token


def _prompt_new_password() -> str:
    password = getpass.getpass("Password: ")
    password_confirm = getpass.getpass("Confirm password: ")

    if password != password_confirm:
        typer.echo("Passwords do not match.")
        raise typer.Exit(code=1)

    if not validate_password(password):
        raise typer.Exit(code=1)

    return password


def _finish(envelope) -> dict:
    """
    Prints the envelope's message; exits non-zero on errors.
    """
    typer.echo(message_of(envelope))
    if not is_success(envelope):
        raise typer.Exit(code=1)
    return envelope


@app.command("register")
def register(
    name: str = typer.Option(None, "--name", "-n", help="Full name"),
    email: str = typer.Option(None, "--email", "-e", help="Email address"),
):
    """
    Create a new account.
    """
    if name is None:
        name = typer.prompt("Name")
    if email is None:
        email = typer.prompt("Email")

    password = _prompt_new_password()
    _finish(api_register(name, email, password))


@app.command("login")
def login(
    email: str = typer.Option(None, "--email", "-e", help="Email address"),
):
    """
    Login and store the session token. Only allowed if no session is active.
    """
    if is_logged_in():
        typer.echo("Session already active. Logout first to remove current session token.")
        raise typer.Exit(code=1)

    if email is None:
        email = typer.prompt("Email")

    password = getpass.getpass("Password: ")

    envelope = _finish(api_login(email, password))
    save_token(envelope["data"]["token"])


@app.command("refresh")
def refresh():
    """
    Exchange the stored token for a fresh one.
    """
    envelope = _finish(api_refresh(_require_token()))
    save_token(envelope["data"]["token"])


@app.command("whoami")
def whoami():
    """
    Show the profile of the logged in account.
    """
    envelope = _finish(api_fetch(_require_token()))
    typer.echo(json.dumps(envelope.get("data"), indent=2))


@app.command("update")
def update(
    name: str = typer.Option(None, "--name", "-n", help="New full name"),
    email: str = typer.Option(None, "--email", "-e", help="New email address"),
):
    """
    Replace name, email and password of the logged in account.
    """
    token = _require_token()

    if name is None:
        name = typer.prompt("Name")
    if email is None:
        email = typer.prompt("Email")

    password = _prompt_new_password()
    _finish(api_update(token, name, email, password))


@app.command("delete")
def delete(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Delete the logged in account and end the local session.
    """
    token = _require_token()

    if not yes:
        typer.confirm("Delete this account permanently?", abort=True)

    _finish(api_delete(token))
    clear_token()


@app.command("logout")
def logout():
    """
    End the local session. Tokens are stateless, so nothing is sent to the API.
    """
    clear_token()
    typer.echo("Session ended.")
