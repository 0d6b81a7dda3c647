import os
from typing import Optional

from fastapi import Header, HTTPException, status

ADMIN_KEY = os.getenv("ADMIN_KEY", "change_me_admin_key")


def require_admin(x_admin_key: Optional[str] = Header(None)):
    if x_admin_key is None or x_admin_key != ADMIN_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin auth required")
