from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies import get_auth
from .service import AuthService, LoggedInUser, TokenOut

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterIn(BaseModel):
    name: str
    email: str
    password: str
    cpf: str
    birthDate: date


class LoginIn(BaseModel):
    email: str
    password: str


@router.post("/register", response_model=LoggedInUser, status_code=201)
def register(body: RegisterIn, auth: AuthService = Depends(get_auth)):
    return auth.register(body.name, body.email, body.password, body.cpf, body.birthDate)


@router.post("/login", response_model=TokenOut)
def login(body: LoginIn, auth: AuthService = Depends(get_auth)):
    return auth.login(body.email, body.password)
