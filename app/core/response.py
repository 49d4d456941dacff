"""
统一响应模块

所有接口（包括错误）都返回 {success, code, message, data} 信封，
HTTP 状态码与 code 字段保持一致
"""
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class ResponseModel(BaseModel, Generic[T]):
    """响应信封，data 的类型由具体接口决定"""
    success: bool = Field(True, description="是否成功")
    code: int = Field(200, description="与 HTTP 状态码一致")
    message: str = Field("操作成功", description="提示信息")
    data: Optional[T] = None


class PagedData(BaseModel, Generic[T]):
    """分页数据"""
    items: list[T]
    total: int
    page: int
    page_size: int
    pages: int


class PagedResponseModel(ResponseModel[PagedData[T]], Generic[T]):
    pass


class MessageResponse(ResponseModel[None]):
    """只有提示信息、没有数据的响应（删除等）"""
    pass


DictResponse = ResponseModel[dict]


def page_count(total: int, page_size: int) -> int:
    """总页数，page_size 非正数时为 0"""
    if page_size <= 0:
        return 0
    return -(-total // page_size)


def success_response(data: Any = None, message: str = "操作成功", code: int = 200) -> dict:
    return {"success": True, "code": code, "message": message, "data": data}


def created_response(data: Any = None, message: str = "创建成功") -> dict:
    """201 响应，路由需同时声明 status_code=201"""
    return success_response(data=data, message=message, code=201)


def error_response(message: str = "操作失败", code: int = 400, data: Any = None) -> dict:
    return {"success": False, "code": code, "message": message, "data": data}


def paged_response(
    items: list,
    total: int,
    page: int,
    page_size: int,
    message: str = "查询成功"
) -> dict:
    """分页列表响应"""
    return success_response(
        data={
            "items": items,
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": page_count(total, page_size),
        },
        message=message,
    )
