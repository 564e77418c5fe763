# phastauth_cli/main.py


import typer
import uvicorn

from phastauth_cli.users.commands import app as users_app

app = typer.Typer(help="PhastAuth server and client commands")
app.add_typer(users_app, name="users")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """
    Run the REST API.
    """
    uvicorn.run("phastauth.main:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
