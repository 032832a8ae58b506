"""
tencentcloud-cmq: 腾讯云消息队列 CMQ 异步 SDK

安装:
    pip install tencentcloud-cmq

使用:
    from tencentcloud_cmq import Account, QueueMeta

    async with Account(secret_id, secret_key) as account:
        await account.create_queue("orders", QueueMeta(visibility_timeout=60))
        queue = account.get_queue("orders")
        await queue.send_message("hello")
        msg = await queue.receive_message(polling_wait_seconds=10)
        await queue.delete_message(msg.receipt_handle)
"""

__version__ = "0.1.0"

from .account import Account
from .client import CMQClient
from .exceptions import (
    CMQClientError,
    CMQError,
    CMQHttpError,
    CMQParseError,
    CMQServerError,
)
from .http import CMQHttp, HttpResponse
from .models import QueueMessage, QueueMeta, QueueSummary
from .queue import Queue

__all__ = [
    "Account",
    "Queue",
    "CMQClient",
    "CMQHttp",
    "HttpResponse",
    "QueueMeta",
    "QueueMessage",
    "QueueSummary",
    "CMQError",
    "CMQClientError",
    "CMQHttpError",
    "CMQServerError",
    "CMQParseError",
]
