"""HTTP route definitions for the account service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, EmailStr, Field
from schemas import Account as AccountSchema

from ..domain.account import Account
from ..domain.contracts import CreateAccountInput, Credentials, UpdateAccountInput
from ..domain.errors import AccountError
from ..domain.service import AccountService
from ..mailer import EmailDeliveryError
from ..security.tokens import TokenError, decode_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


class AccountResponse(AccountSchema):
    """Serialised representation of an `Account` aggregate."""

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain aggregate."""
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            first_name=account.first_name,
            active=account.active,
            created_at=account.created_at,
            updated_at=account.updated_at,
            created_by=account.created_by,
            updated_by=account.updated_by,
        )


class CreateAccountRequest(BaseModel):
    """Payload accepted when an administrator creates an account."""

    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: str | None = None


class UpdateAccountRequest(BaseModel):
    """Partial account update; omitted fields are left unchanged."""

    email: EmailStr | None = None
    first_name: str | None = None
    password: str | None = Field(default=None, min_length=1)


class ActivateAccountRequest(BaseModel):
    token: str


class TokenRequest(BaseModel):
    """Credentials exchanged for an access token."""

    username: str
    password: str


class TokenResponse(BaseModel):
    """Token issuance response containing the bearer token."""

    access_token: str
    token_type: str = "bearer"
    account_id: int


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_actor_id(
    request: Request,
    authorization: str | None = Header(default=None),
) -> int:
    """Return the account id carried by the bearer access token."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    service = get_service(request)
    settings = service.settings
    try:
        claims = decode_token(token, settings.access_token_secret, issuer=settings.jwt_issuer)
    except TokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    if claims.subject_id is None or settings.activation_grant in claims.grants:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="not an access token")
    return claims.subject_id


@router.post("/token", response_model=TokenResponse)
async def issue_token(
    payload: TokenRequest,
    service: AccountService = Depends(get_service),
) -> TokenResponse:
    """Verify credentials and issue a signed access token."""
    try:
        account = await service.verify(Credentials(username=payload.username, password=payload.password))
    except AccountError as exc:
        raise _http_error(exc) from exc
    if not account.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="account not activated")
    return TokenResponse(access_token=service.generate_access_token(account), account_id=account.id)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    try:
        account = await service.find(account_id)
    except AccountError as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_domain(account)


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: CreateAccountRequest,
    actor_id: int = Depends(get_actor_id),
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    """Create a pending account and send its activation email."""
    try:
        account = await service.create(
            CreateAccountInput(
                username=payload.username,
                email=payload.email,
                password=payload.password,
                first_name=payload.first_name,
            ),
            actor_id,
        )
    except AccountError as exc:
        raise _http_error(exc) from exc
    except EmailDeliveryError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return AccountResponse.from_domain(account)


@router.patch("/accounts/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_account(
    account_id: int,
    payload: UpdateAccountRequest,
    actor_id: int = Depends(get_actor_id),
    service: AccountService = Depends(get_service),
) -> None:
    try:
        await service.update(
            UpdateAccountInput(
                account_id=account_id,
                email=payload.email,
                first_name=payload.first_name,
                password=payload.password,
            ),
            actor_id,
        )
    except AccountError as exc:
        raise _http_error(exc) from exc


@router.post("/accounts/activate", status_code=status.HTTP_204_NO_CONTENT)
async def activate_account(
    payload: ActivateAccountRequest,
    service: AccountService = Depends(get_service),
) -> None:
    """Activate the account referenced by an emailed activation token."""
    try:
        await service.activate(payload.token)
    except TokenError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AccountError as exc:
        raise _http_error(exc) from exc


def _http_error(exc: AccountError) -> HTTPException:
    if exc.http_status >= 500:
        logger.error("account operation failed: %s", exc.message)
    return HTTPException(status_code=exc.http_status, detail={"code": exc.code, "message": exc.message})
