"""
Shared router dependencies: the application store and the caller's session.
"""
from typing import Annotated

from fastapi import Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from shopdesk.core.logging import bind_actor
from shopdesk.schemas.user import Session
from shopdesk.services.auth import AuthService
from shopdesk.services.store import ShopStore

basic_auth = HTTPBasic()


def get_store(request: Request) -> ShopStore:
    """The store created at startup."""
    return request.app.state.store


async def get_session(
    credentials: Annotated[HTTPBasicCredentials, Depends(basic_auth)],
    store: Annotated[ShopStore, Depends(get_store)],
) -> Session:
    """
    Authenticate the caller's staff credentials (email and password).

    The bcrypt check runs in the threadpool, off the event loop.
    """
    session = await run_in_threadpool(
        AuthService(store).authenticate,
        credentials.username,
        credentials.password,
    )
    bind_actor(session.user_id, session.role.value)
    return session


async def get_user_store(
    store: Annotated[ShopStore, Depends(get_store)],
    session: Annotated[Session, Depends(get_session)],
) -> ShopStore:
    """The store acting as the authenticated caller."""
    return store.for_session(session)


StoreDep = Annotated[ShopStore, Depends(get_user_store)]
SessionDep = Annotated[Session, Depends(get_session)]
