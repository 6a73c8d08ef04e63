"""Dependency injection for FastAPI endpoints"""

import logging
from fastapi import Depends, Header, HTTPException, Request
from swissone_gateway.api.errors import domain_error
from swissone_gateway.domain.exceptions import DomainException
from swissone_gateway.domain.models import AccountBook, SessionContext, User
from swissone_gateway.infrastructure.clients.document_store import DocumentStoreClient
from swissone_gateway.infrastructure.clients.identity import IdentityClient
from swissone_gateway.infrastructure.persistence.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_document_store_client() -> DocumentStoreClient:
    """Provide document store client instance"""
    return DocumentStoreClient()


def get_gateway(client: DocumentStoreClient = Depends(get_document_store_client)) -> PersistenceGateway:
    """Provide persistence gateway over the document store"""
    return PersistenceGateway(client)


def get_identity_client() -> IdentityClient:
    """Provide identity provider client instance"""
    return IdentityClient()


async def get_session_context(
    request: Request,
    authorization: str | None = Header(default=None),
    identity_client: IdentityClient = Depends(get_identity_client),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> SessionContext:
    """
    Resolve the caller from the bearer token.

    A valid identity without a user document gets a basic customer
    profile, so first-time sign-ins can use the API immediately.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    request_id = get_request_id(request)
    try:
        identity = await identity_client.resolve(token)
        if identity is None:
            raise HTTPException(status_code=401, detail="Invalid or expired session")

        user = await gateway.get_user(identity.uid)
        if user is None:
            user = await gateway.create_user(
                User(id=identity.uid, email=identity.email, first_name="User", last_name="Name")
            )
            logger.info("Basic user created from session", extra={"request_id": request_id, "user_id": user.id})
    except DomainException as e:
        logger.error(f"Session resolution failed: {e}", extra={"request_id": request_id})
        raise domain_error(e)

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is deactivated")

    return SessionContext(user_id=user.id, role=user.role, request_id=request_id)


def require_admin(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    """Admin-only endpoints"""
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return ctx


async def get_account_book(
    ctx: SessionContext = Depends(get_session_context),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> AccountBook:
    """Accounts visible to the caller: all for admins, own active ones for customers"""
    try:
        if ctx.is_admin:
            accounts = await gateway.get_all_accounts()
        else:
            accounts = await gateway.get_accounts_by_owner(ctx.user_id)
    except DomainException as e:
        logger.error(f"Account load failed: {e}", extra={"request_id": ctx.request_id})
        raise domain_error(e)
    return AccountBook(accounts)
