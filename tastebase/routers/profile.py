from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from tastebase.errors import InvalidUsername
from tastebase.schemas.auth import AuthResponse, AuthUser, ProfileUpdateRequest
from tastebase.services.auth import AuthService, get_auth_service
from tastebase.utils.auth import get_current_user, get_session_token

router = APIRouter()


@router.post("/update", response_model=AuthResponse)
def update_profile(
    body: ProfileUpdateRequest,
    token: str | None = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
    current_user: AuthUser = Depends(get_current_user),
):
    try:
        user = auth.update_profile(
            current_user.id, token,
            full_name=body.full_name,
            username=body.username,
            bio=body.bio,
            avatar_url=body.avatar_url,
        )
    except InvalidUsername as e:
        return JSONResponse(status_code=400, content={"errors": {"username": str(e)}})
    if user is None:
        raise HTTPException(status_code=500, detail="Failed to update profile")
    return AuthResponse(user=user)
