"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from tokenkeeper.models.user import User
from tokenkeeper.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from tokenkeeper.services.auth import (
    AuthService,
    BadRequestError,
    ConflictError,
    InvalidCredentialsError,
    UnauthorizedError,
)

router = APIRouter(prefix="/auth", tags=["auth"])

_BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


def get_auth_service(request: Request) -> AuthService:
    """Dependency to get the application's auth service."""
    return request.app.state.auth_service


def get_bearer_token(request: Request) -> str:
    """Extract the token from ``Authorization: Bearer <token>``."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer ") or not auth_header[7:].strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers=_BEARER_HEADERS,
        )
    return auth_header[7:].strip()


async def get_current_user(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Dependency to get the current authenticated user from the bearer token."""
    try:
        return await auth_service.authenticate_token(token)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers=_BEARER_HEADERS,
        ) from e


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Create an account and log it in."""
    try:
        tokens = await auth_service.register(
            username=request.username,
            email=request.email,
            password=request.password,
            nickname=request.nickname,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return TokenResponse(**tokens)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate and get tokens.

    Unknown email, disabled account and wrong password all produce the
    same 401.
    """
    try:
        tokens = await auth_service.login(request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers=_BEARER_HEADERS,
        ) from e
    return TokenResponse(**tokens)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_tokens(
    request: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair (rotation)."""
    try:
        tokens = await auth_service.refresh_access_token(request.refresh_token)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers=_BEARER_HEADERS,
        ) from e
    return TokenResponse(**tokens)


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Get the current user's information."""
    return UserResponse.model_validate(current_user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the current user's password."""
    try:
        result = await auth_service.change_password(
            current_user.id,
            current_password=request.current_password,
            new_password=request.new_password,
            confirm_password=request.confirm_password,
        )
    except BadRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers=_BEARER_HEADERS,
        ) from e
    return MessageResponse(**result)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_bearer_token),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Log out the current token and drop the user's refresh tokens."""
    result = await auth_service.logout(token, current_user.id)
    return MessageResponse(**result)
