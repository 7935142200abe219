from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncGenerator, Optional
from pydantic import BaseModel
from app.core.security import decode_token
from app.database import TENANT_NAME_PATTERN, tenant_session

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity carried by the access token"""
    employee_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    user_name: str
    dbname: str


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Verify the bearer token and return the caller.
    The token's dbname claim selects the tenant database for the request.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise credentials_exception

    dbname = payload.get("dbname")
    user_name = payload.get("user_name") or payload.get("name")
    if not dbname or not user_name or not TENANT_NAME_PATTERN.match(str(dbname)):
        raise credentials_exception

    return CurrentUser(
        employee_id=str(payload["employee_id"]) if payload.get("employee_id") is not None else None,
        email=payload.get("email"),
        name=payload.get("name"),
        user_name=str(user_name),
        dbname=str(dbname),
    )


async def get_tenant_db(
    current_user: CurrentUser = Depends(get_current_user),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a session on the caller's tenant database"""
    async with tenant_session(current_user.dbname) as session:
        yield session
