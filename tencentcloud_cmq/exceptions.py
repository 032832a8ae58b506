"""
CMQ 异常类型

分四类:
    CMQClientError: 参数校验失败，请求尚未发出
    CMQHttpError  : 网络错误、超时或非 2xx HTTP 状态
    CMQServerError: HTTP 200 但返回 JSON 中 code != 0
    CMQParseError : 返回内容不是合法 JSON 或缺少 code 字段
"""

from typing import Optional


class CMQError(Exception):
    """所有 CMQ 异常的基类"""


class CMQClientError(CMQError):
    """客户端参数错误，请求不会发出"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"CMQClientError: {self.message}"


class CMQHttpError(CMQError):
    """
    传输层错误

    Attributes:
        status:  HTTP 状态码，网络错误或超时时为 None
        message: 错误描述
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return f"CMQHttpError: {self.message}"
        return f"CMQHttpError: status={self.status} {self.message}"


class CMQServerError(CMQError):
    """
    服务端返回的业务错误

    Attributes:
        code:       服务端错误码（非 0）
        message:    错误描述
        request_id: 请求 ID，用于与服务端日志对应
        error_list: 批量删除时服务端返回的逐条失败信息
    """

    def __init__(self, code: int, message: str, request_id: str = "",
                 error_list: Optional[list] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.request_id = request_id
        self.error_list = error_list or []

    def __str__(self) -> str:
        return (f"CMQServerError: code={self.code} message={self.message} "
                f"requestId={self.request_id}")


class CMQParseError(CMQError):
    """返回内容无法解析"""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.message = message
        self.body = body

    def __str__(self) -> str:
        return f"CMQParseError: {self.message}"
