"""
Authentication Service Module

Handles Firebase authentication and user identification for API requests.
"""

import logging
from typing import Optional
from fastapi import Request
from firebase_admin import auth

logger = logging.getLogger(__name__)

class AuthService:
    """Service for handling Firebase authentication"""

    @staticmethod
    async def get_user_id_from_request(request: Request) -> Optional[str]:
        """
        Extract the Firebase user id from the request's bearer token

        Args:
            request (Request): FastAPI request object

        Returns:
            str: user id, or None when the session is missing or invalid
        """
        token = AuthService.extract_token_from_header(request.headers.get("Authorization"))
        if not token:
            return None

        decoded_token = AuthService.verify_token(token)
        if not decoded_token:
            return None
        return decoded_token.get('uid')

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """
        Verify Firebase ID token

        Args:
            token (str): Firebase ID token

        Returns:
            dict: Decoded token data or None if invalid
        """
        try:
            return auth.verify_id_token(token)
        except Exception as e:
            logger.error(f"Token verification failed: {e}")
            return None

    @staticmethod
    def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
        """Extract token from Authorization header"""
        if not auth_header or not auth_header.startswith("Bearer "):
            return None
        token = auth_header[len("Bearer "):].strip()
        return token or None

# Global instance
auth_service = AuthService()
