from typing import Optional, Protocol
from fastapi import Header, Request
from loguru import logger

from errors import unauthorized


class CredentialVerifier(Protocol):
    def verify(self, credential: Optional[str]) -> bool:
        ...


class StaticTokenVerifier:
    """Accepts exactly one bearer token. Placeholder until a real identity provider exists."""

    def __init__(self, token: str):
        self.expected = f"Bearer {token}"

    def verify(self, credential: Optional[str]) -> bool:
        return credential is not None and credential == self.expected


async def require_credentials(request: Request, authorization: Optional[str] = Header(None)):
    """Dépendance FastAPI protégeant les routes d'écriture"""
    verifier: CredentialVerifier = request.app.state.verifier
    if not verifier.verify(authorization):
        logger.warning(f"Rejected credentials for {request.method} {request.url.path}")
        raise unauthorized()
