from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from fluxcart.api.deps import get_context
from fluxcart.data.database import get_db
from fluxcart.domain.context import RequestContext
from fluxcart.domain.errors import ConflictError, NotFoundError, ValidationError
from fluxcart.services.user_service import UserService
from fluxcart.domain.schemas import ProfileIn, UserRead

router = APIRouter(tags=["users"])

@router.get("/me", response_model=UserRead)
def get_me(ctx: RequestContext = Depends(get_context), db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(ctx.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/me", response_model=UserRead)
def update_me(
    payload: ProfileIn,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    service = UserService(db)
    try:
        return service.update_profile(ctx, name=payload.name, phone=payload.phone)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
