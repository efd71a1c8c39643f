"""
角色模型

角色等级的唯一来源，其他模块一律通过这里比较权限，不要再复制等级表。
"""
from enum import Enum
from typing import Any, Union

from app.core.exceptions import InvalidRole


class Role(str, Enum):
    """用户角色"""
    ADMIN = "Admin"
    EDITOR = "Editor"
    WRITER = "Writer"
    READER = "Reader"


# 数值越大权限越高
ROLE_HIERARCHY = {
    Role.ADMIN: 4,
    Role.EDITOR: 3,
    Role.WRITER: 2,
    Role.READER: 1,
}

ALL_ROLES = [role.value for role in Role]

DEFAULT_ROLE = Role.READER


def is_valid_role(value: Any) -> bool:
    """判断值是否属于四种角色之一"""
    if isinstance(value, Role):
        return True
    return isinstance(value, str) and value in ALL_ROLES


def parse_role(value: Union[Role, str]) -> Role:
    """
    将字符串转换为Role

    Raises:
        InvalidRole: 未知角色
    """
    if not is_valid_role(value):
        raise InvalidRole(f"Invalid role: {value}")
    return Role(value)


def rank(role: Union[Role, str]) -> int:
    """返回角色的权限等级"""
    return ROLE_HIERARCHY[parse_role(role)]


def has_minimum_role(actor_role: Union[Role, str], required_role: Union[Role, str]) -> bool:
    """actor_role 的等级是否不低于 required_role"""
    return rank(actor_role) >= rank(required_role)
