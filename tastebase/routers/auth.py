from fastapi import APIRouter, Depends, HTTPException, Response

from tastebase.errors import (
    AlreadyExists, InvalidCredentials, InvalidPassword, InvalidUsername,
)
from tastebase.schemas.auth import (
    AuthResponse, SessionResponse, SignInRequest, SignUpRequest,
)
from tastebase.services.auth import AuthService, get_auth_service
from tastebase.utils.auth import (
    clear_session_cookie, get_session_token, set_session_cookie,
)

router = APIRouter()


@router.post("/signup", response_model=AuthResponse)
def signup(
    body: SignUpRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    try:
        user, token = auth.sign_up(body.email, body.password, body.full_name, body.username)
    except (AlreadyExists, InvalidPassword, InvalidUsername) as e:
        raise HTTPException(status_code=400, detail=str(e))
    set_session_cookie(response, token)
    return AuthResponse(user=user)


@router.post("/signin", response_model=AuthResponse)
def signin(
    body: SignInRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    try:
        user, token = auth.sign_in(body.email, body.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=str(e))
    set_session_cookie(response, token)
    return AuthResponse(user=user)


@router.post("/signout")
def signout(
    response: Response,
    token: str | None = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
):
    auth.sign_out(token)
    clear_session_cookie(response)
    return {"success": True}


@router.get("/session", response_model=SessionResponse)
def session(
    response: Response,
    token: str | None = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
):
    user = auth.get_user_from_session(token)
    if user is None and token:
        clear_session_cookie(response)
    return SessionResponse(user=user)
