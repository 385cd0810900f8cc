from fastapi import APIRouter, Depends, HTTPException, Request, status

from quizrush.dependencies import get_identity_provider
from quizrush.middleware.rate_limit import admin_limit
from quizrush.schemas import CreateUserRequest, UpdateEmailRequest
from quizrush.services.identity import IdentityProvider

router = APIRouter(tags=["admin"])


@router.post("/create-user", status_code=status.HTTP_201_CREATED)
@admin_limit()
def create_user(request: Request, body: CreateUserRequest, identity: IdentityProvider = Depends(get_identity_provider)):
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")
    uid = identity.create_user(body.email, body.password)
    return {"message": "User created successfully", "uid": uid}


@router.delete("/delete-user/{uid}")
@admin_limit()
def delete_user(request: Request, uid: str, identity: IdentityProvider = Depends(get_identity_provider)):
    if not uid.strip():
        raise HTTPException(status_code=400, detail="User id is required.")
    identity.delete_user(uid)
    return {"message": "User deleted successfully"}


@router.post("/user/update-email")
@admin_limit()
def update_email(request: Request, body: UpdateEmailRequest, identity: IdentityProvider = Depends(get_identity_provider)):
    if not body.uid or not body.new_email:
        raise HTTPException(status_code=400, detail="uid and newEmail are required.")
    identity.update_email(body.uid, body.new_email)
    return {"message": "Email updated in identity provider"}
