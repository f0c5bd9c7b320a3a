"""Shared helpers for integration tests."""

from src.lp_gateway.auth.jwt_handler import create_access_token


def bearer(holder_id: str, role: str = "holder") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(holder_id, role=role)}"}
