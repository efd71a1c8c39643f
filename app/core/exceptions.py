"""
业务异常定义与全局异常处理

所有可预期的失败都在服务层转换为 AppError 的子类，
由这里注册的处理器统一转换为 {success, message, data?, errors?, details?} 响应体。
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """业务异常基类"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """请求参数错误"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class InvalidRole(ValidationError):
    """未知角色"""
    default_message = "Invalid role"


class AuthenticationError(AppError):
    """未认证或token无效"""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class AuthorizationError(AppError):
    """已认证但角色或归属不满足"""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied. Insufficient permissions."


class NotFoundError(AppError):
    """资源不存在（也用于屏蔽他人资源的存在性）"""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    """重复点赞等唯一约束冲突"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class InternalError(AppError):
    """存储或其他非预期失败"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server Error"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """框架抛出的HTTPException（包括未匹配路由的404）也统一为响应体格式"""
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体校验失败返回400和字段级错误列表"""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(location),
            "message": error.get("msg", "Invalid value"),
        })
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """兜底处理：记录日志，生产环境不暴露内部信息"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = InternalError().to_dict()
    if settings.DEBUG:
        body["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
