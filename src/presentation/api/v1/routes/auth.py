import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.domain.entities import Anonymous, Principal
from src.domain.exceptions import UnauthorizedException
from src.infrastructure.config.settings import get_settings
from src.presentation.api.dependencies import (AuthProviderDep,
                                               CurrentIdentity, SchoolRepo,
                                               get_bearer_token)
from src.presentation.api.v1.schemas.token import (SessionState,
                                                   SignUpRequest, Token,
                                                   TokenRequest)
from src.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.signup_rate_limit)
async def sign_up(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    data: SignUpRequest,
    auth: AuthProviderDep,
):
    """
    Create a login account and open a session.

    The account is not bound to any school yet; the next step is POST /schools.
    """
    session = await auth.sign_up(data.email, data.password, {"full_name": data.full_name})
    logger.info("New account signed up: %s", session.identity.id)
    return Token(access_token=session.access_token, expires_at=session.expires_at)


@router.post("/token", response_model=Token)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    data: TokenRequest,
    auth: AuthProviderDep,
):
    """
    Password login.

    Unknown email and wrong password give the same 401 so accounts cannot be
    enumerated.
    """
    session = await auth.sign_in(data.email, data.password)
    return Token(access_token=session.access_token, expires_at=session.expires_at)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    token: Annotated[str | None, Depends(get_bearer_token)],
    auth: AuthProviderDep,
):
    if not token:
        raise UnauthorizedException()
    await auth.sign_out(token)


@router.get("/session", response_model=SessionState)
async def session_state(principal: CurrentIdentity, school_repo: SchoolRepo):
    """
    Where the caller should land after signing in.

    - no session -> /signup
    - session without a school -> /create-school
    - session bound to a school -> /{slug}/dashboard

    A backend failure while looking up the principal is a 503, never the
    create-school branch.
    """
    if isinstance(principal, Anonymous):
        return SessionState(state="anonymous", redirect_to="/signup")

    if not isinstance(principal, Principal):
        return SessionState(state="unbound", redirect_to="/create-school", email=principal.email)

    school = await school_repo.get_entity_by_id(principal.tenant_id)
    if school is None:
        # Principal without a school is a broken record; treat like a fresh account
        logger.error("Principal %s points at missing school %s", principal.id, principal.tenant_id)
        return SessionState(state="unbound", redirect_to="/create-school", email=principal.email)

    return SessionState(
        state="bound",
        redirect_to=f"/{school.slug}/dashboard",
        email=principal.email,
        role=principal.role.value,
        tenant_id=school.id,
        school_slug=school.slug,
    )
