"""
权限策略

纯函数，不访问数据库。每个策略返回 PermissionDecision，
拒绝时携带角色、是否作者以及未满足的策略，用于403响应的 details。
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.exceptions import AuthorizationError, ValidationError
from app.core.roles import Role, has_minimum_role


@dataclass(frozen=True)
class Actor:
    """单次请求中的操作者，请求期间不可变"""
    id: int
    role: Role
    username: Optional[str] = None


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    policy: str
    actor_role: Role
    required: str
    is_owner: Optional[bool] = None

    def details(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "yourRole": self.actor_role.value,
            "required": self.required,
            "policy": self.policy,
        }
        if self.is_owner is not None:
            data["isAuthor"] = self.is_owner
        return data


def can_create_article(actor: Actor, minimum_role: Role = Role.READER) -> PermissionDecision:
    """默认任何已认证用户都可以创建文章，minimum_role 可提高门槛"""
    return PermissionDecision(
        allowed=has_minimum_role(actor.role, minimum_role),
        policy="article:create",
        actor_role=actor.role,
        required=f"{minimum_role.value} or higher",
    )


def can_update_article(actor: Actor, author_id: int) -> PermissionDecision:
    """Admin/Editor 可更新任意文章，Writer 只能更新自己的文章"""
    is_owner = actor.id == author_id
    allowed = has_minimum_role(actor.role, Role.EDITOR) or (actor.role == Role.WRITER and is_owner)
    return PermissionDecision(
        allowed=allowed,
        policy="article:update",
        actor_role=actor.role,
        required=f"{Role.ADMIN.value}, {Role.EDITOR.value}, or be the article author ({Role.WRITER.value})",
        is_owner=is_owner,
    )


def can_delete_article(actor: Actor) -> PermissionDecision:
    """只有Admin可以删除文章，与是否作者无关"""
    return PermissionDecision(
        allowed=actor.role == Role.ADMIN,
        policy="article:delete",
        actor_role=actor.role,
        required=Role.ADMIN.value,
    )


def can_delete_comment(actor: Actor, author_id: int) -> PermissionDecision:
    """评论作者或Admin可以删除评论（Editor没有该权限）"""
    is_owner = actor.id == author_id
    return PermissionDecision(
        allowed=is_owner or actor.role == Role.ADMIN,
        policy="comment:delete",
        actor_role=actor.role,
        required=f"{Role.ADMIN.value} or be the comment author",
        is_owner=is_owner,
    )


def can_toggle_like(actor: Actor) -> PermissionDecision:
    return PermissionDecision(
        allowed=True,
        policy="like:toggle",
        actor_role=actor.role,
        required="any authenticated user",
    )


def can_manage_users(actor: Actor) -> PermissionDecision:
    return PermissionDecision(
        allowed=actor.role == Role.ADMIN,
        policy="user:manage",
        actor_role=actor.role,
        required=Role.ADMIN.value,
    )


def enforce(decision: PermissionDecision, message: str) -> None:
    """
    拒绝时抛出AuthorizationError

    Raises:
        AuthorizationError: 策略未满足
    """
    if not decision.allowed:
        raise AuthorizationError(message, details=decision.details())


def ensure_not_self(actor: Actor, target_user_id: int, message: str) -> None:
    """管理员不能对自己执行角色变更或删除，属于参数错误而不是权限错误"""
    if actor.id == target_user_id:
        raise ValidationError(message)
