from fastapi import Depends, HTTPException
from auth.services.auth_service import Actor, get_current_active_user

def require_manager(user: Actor = Depends(get_current_active_user)) -> Actor:
    if not user.is_scheduler:
        raise HTTPException(status_code=403, detail="Manager role required")
    return user

def require_admin(user: Actor = Depends(get_current_active_user)) -> Actor:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="HR or admin role required")
    return user
