from typing import Dict

from fastapi import Request
from jose import jwt
from jose.exceptions import JOSEError


def extract_user_identity(request: Request, payload: Dict) -> str:
    """
    Extract user identity from:
    1. Cloud Run IAM header
    2. JWT token (claims read without signature verification)
    3. Payload
    4. Fallback to anonymous
    """

    user_email = request.headers.get("X-Goog-Authenticated-User-Email")
    if user_email:
        return user_email.split(":")[-1]

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1]
        try:
            claims = jwt.get_unverified_claims(token)
            return claims.get("email") or claims.get("sub") or "unknown_user"
        except JOSEError:
            pass

    if payload.get("user_id"):
        return payload["user_id"]

    return "anonymous"
