from __future__ import annotations

from pydantic import BaseModel


class AuthPrincipal(BaseModel):
    user_id: str
    jwt_token: str
    token_issued_at: int | None = None

    def owns(self, creator_id: str) -> bool:
        return self.user_id == creator_id
