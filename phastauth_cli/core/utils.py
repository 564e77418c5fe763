import typer

from phastauth.users.validation import check_password_strength


def validate_password(password: str) -> bool:
    """
    Applies the server's password strength rules before anything is sent.
    """
    failure = check_password_strength(password)
    if failure is not None:
        typer.echo(failure.message)
        return False
    return True
