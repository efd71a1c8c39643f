"""
管理员API，所有接口要求角色恰好为Admin
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Actor
from app.db.database import get_db
from app.schemas.common import ResponseModel
from app.schemas.user import RoleUpdate
from app.services.user_service import UserService, build_user_response
from app.utils.permissions import require_admin

router = APIRouter(prefix="/api/admin", tags=["管理"])


@router.get("/users", response_model=ResponseModel)
async def list_users(
    page: int = Query(1, ge=1, description="页码"),
    limit: int = Query(20, ge=1, le=100, description="每页数量"),
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    data = await UserService(db).list_users(page=page, limit=limit)
    return ResponseModel(data=data)


@router.get("/users/{user_id}", response_model=ResponseModel)
async def get_user(
    user_id: int,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).get_or_404(user_id)
    return ResponseModel(data=build_user_response(user))


@router.put("/users/{user_id}/role", response_model=ResponseModel)
async def update_user_role(
    user_id: int,
    role_data: RoleUpdate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    修改用户角色（不能修改自己）
    """
    old_role, user = await UserService(db).update_role(actor, user_id, role_data.role)
    return ResponseModel(
        message=f"User role updated from {old_role} to {user.role}",
        data=build_user_response(user),
    )


@router.delete("/users/{user_id}", response_model=ResponseModel)
async def delete_user(
    user_id: int,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    删除用户（不能删除自己）
    """
    await UserService(db).delete_user(actor, user_id)
    return ResponseModel(message="User deleted successfully")


@router.get("/stats", response_model=ResponseModel)
async def get_stats(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    data = await UserService(db).stats()
    return ResponseModel(data=data)
