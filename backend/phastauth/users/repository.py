import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..models.User import User, UserRecord, utcnow

logger = logging.getLogger(__name__)


class UserRepository:
    """
    Data-access boundary for user accounts.

    Every operation opens its own session; nothing spans two calls.
    Integrity violations (duplicate email) are reported as a False result,
    any other SQLAlchemyError propagates to the caller.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_user(self, name: str, email: str, password_hash: str) -> bool:
        with Session(self.engine) as session:
            session.add(User(name=name, email=email, password_hash=password_hash))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info("User creation rejected: email already registered")
                return False
        return True

    def password_hash_by_email(self, email: str) -> str | None:
        with Session(self.engine) as session:
            statement = select(User.password_hash).where(User.email == email)
            return session.exec(statement).first()

    def validate_login(self, email: str, password_hash: str) -> int | None:
        with Session(self.engine) as session:
            statement = select(User.id).where(
                User.email == email,
                User.password_hash == password_hash,
            )
            return session.exec(statement).first()

    def user_by_id(self, user_id: int) -> UserRecord | None:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            if user is None:
                return None
            return UserRecord.model_validate(user, from_attributes=True)

    def update_user(self, user_id: int, name: str, email: str, password_hash: str) -> bool:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            if user is None:
                return False

            user.name = name
            user.email = email
            user.password_hash = password_hash
            user.updated_at = utcnow()
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info("User %s update rejected: email already registered", user_id)
                return False
        return True

    def delete_user(self, user_id: int) -> bool:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            if user is None:
                return False
            session.delete(user)
            session.commit()
        return True
