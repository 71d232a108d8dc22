from fastapi import APIRouter, Depends

from ..core.security import ActiveContext, get_current_context
from ..schemas.users import CurrentUserRead


router = APIRouter()

@router.get("/me", response_model=CurrentUserRead)
async def get_current_user_info(context: ActiveContext = Depends(get_current_context)):
    user = context.user
    return CurrentUserRead(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        image=user.image,
        is_active=user.is_active,
        created_at=user.created_at,
        active_organization_id=context.active_organization_id,
    )
