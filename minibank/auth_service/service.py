import logging
import re
from datetime import date

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..account_service.store import AccountStore
from ..config import ACCESS_MIN
from ..db import unit_of_work
from ..errors import AuthError
from ..models import User
from ..security import create_token, pwd

logger = logging.getLogger(__name__)

_CPF_PUNCTUATION = re.compile(r"[.\-\s]")


def clean_cpf(value: str) -> str:
    return _CPF_PUNCTUATION.sub("", value)


class LoggedInUser(BaseModel):
    id: int
    email: str
    name: str
    cpf: str
    birth_date: date


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = ACCESS_MIN * 60


def _public(user: User) -> LoggedInUser:
    return LoggedInUser(id=user.id, email=user.email, name=user.name, cpf=user.cpf,
                        birth_date=user.birth_date)


class AuthService:
    def __init__(self, engine, accounts: AccountStore):
        self.engine = engine
        self.accounts = accounts

    def register(self, name: str, email: str, password: str, cpf: str, birth_date: date) -> LoggedInUser:
        with unit_of_work(self.engine) as session:
            if session.exec(select(User).where(User.email == email)).first():
                raise AuthError(409, "User with this email already exists")
            user = User(name=name, email=email, cpf=clean_cpf(cpf), birth_date=birth_date,
                        password=pwd.hash(password))
            session.add(user)
            try:
                session.flush()
            except IntegrityError:
                raise AuthError(409, "User with this cpf already exists")
            self.accounts.create_default_pair(session, user.id)
        logger.info("registered user %s", user.id)
        return _public(user)

    def validate_user(self, email: str, password: str) -> LoggedInUser:
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.email == email)).first()
        if not user or not pwd.verify(password, user.password):
            raise AuthError(401, "Invalid credentials")
        return _public(user)

    def login(self, email: str, password: str) -> TokenOut:
        user = self.validate_user(email, password)
        return TokenOut(access_token=create_token(user.id, user.email))

    def find_by_id(self, user_id: int) -> LoggedInUser:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
        if not user:
            raise AuthError(401, "User not found")
        return _public(user)
