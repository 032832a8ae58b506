"""
CMQ 队列操作

Queue 由 Account.get_queue() 创建，绑定一个队列名和共享的 CMQClient。

消息可见性（由服务端维护）:
    active   --receive-->            inactive（持续 visibilityTimeout 秒）
    inactive --delete-->             已删除
    inactive --超时未删除-->          active（重新投递，dequeueCount + 1）
    active   --超过 msgRetentionSeconds--> 已删除
"""

import logging
from typing import Mapping, Optional, Sequence

from .client import CMQClient
from .exceptions import CMQClientError, CMQServerError
from .models import (
    QueueMessage,
    QueueMeta,
    SendMessageResult,
    check_response,
    parse_msg_id_list,
    parse_msg_info_list,
    parse_response,
)

logger = logging.getLogger("tencent-cmq")

# 批量发送/消费/删除的单次上限
MAX_BATCH_SIZE = 16
# 未指定长轮询时消费请求的超时
DEFAULT_RECEIVE_TIMEOUT_MS = 30000
# 长轮询时在等待时间之外额外留出的超时余量
LONG_POLL_MARGIN_MS = 10000


async def invoke(
    client: CMQClient,
    action: str,
    params: Mapping[str, object],
    timeout_ms: Optional[int] = None,
) -> dict:
    """调用接口并解析响应，code != 0 时抛出 CMQServerError"""
    text = await client.call(action, params, timeout_ms)
    data = parse_response(text)
    try:
        check_response(data)
    except CMQServerError as e:
        logger.warning("%s 失败: code=%s message=%s requestId=%s",
                       action, e.code, e.message, e.request_id)
        raise
    return data


def _receive_timeout(polling_wait_seconds: int, params: dict) -> int:
    if polling_wait_seconds > 0:
        params["pollingWaitSeconds"] = str(polling_wait_seconds)
        return polling_wait_seconds * 1000 + LONG_POLL_MARGIN_MS
    return DEFAULT_RECEIVE_TIMEOUT_MS


class Queue:
    def __init__(self, queue_name: str, client: CMQClient):
        self.queue_name = queue_name
        self.client = client

    def __repr__(self) -> str:
        return f"Queue({self.queue_name!r})"

    # -------- 队列属性 --------

    async def get_attributes(self) -> QueueMeta:
        data = await invoke(self.client, "GetQueueAttributes", {"queueName": self.queue_name})
        return QueueMeta.from_dict(data)

    async def set_attributes(self, meta: QueueMeta):
        """只下发取值为正的属性，其余保持不变"""
        params = {"queueName": self.queue_name}
        params.update(meta.to_params())
        await invoke(self.client, "SetQueueAttributes", params)

    # -------- 发送 --------

    async def send_message(self, msg_body: str, delay_seconds: int = 0) -> str:
        """
        发送一条消息，返回服务端生成的 msgId。

        Args:
            msg_body:      消息正文
            delay_seconds: 消息发送后多少秒才对消费者可见，0 表示立即可见
        """
        data = await invoke(self.client, "SendMessage", {
            "queueName": self.queue_name,
            "msgBody": msg_body,
            "delaySeconds": str(delay_seconds),
        })
        return SendMessageResult.from_dict(data).msg_id

    async def batch_send_message(self, msg_bodies: Sequence[str],
                                 delay_seconds: int = 0) -> list[str]:
        """批量发送 1-16 条消息，返回的 msgId 与传入顺序一一对应"""
        if not msg_bodies or len(msg_bodies) > MAX_BATCH_SIZE:
            raise CMQClientError(
                f"Invalid parameter: batch size must be 1-{MAX_BATCH_SIZE}, got {len(msg_bodies)}"
            )

        params = {"queueName": self.queue_name, "delaySeconds": str(delay_seconds)}
        for i, body in enumerate(msg_bodies, start=1):
            params[f"msgBody.{i}"] = body

        data = await invoke(self.client, "BatchSendMessage", params)
        return parse_msg_id_list(data)

    # -------- 消费 --------

    async def receive_message(self, polling_wait_seconds: int = 0) -> QueueMessage:
        """
        消费一条消息，消息随即进入 inactive 状态，需在 visibilityTimeout 内删除。

        Args:
            polling_wait_seconds: 长轮询等待时间，取值 0-30 秒。大于 0 时下发给服务端
                                  并相应放宽请求超时；否则使用队列属性中的设置

        Raises:
            CMQServerError: 队列中没有消息时服务端同样返回错误码，调用方可按需忽略
        """
        params = {"queueName": self.queue_name}
        timeout_ms = _receive_timeout(polling_wait_seconds, params)
        data = await invoke(self.client, "ReceiveMessage", params, timeout_ms)
        return QueueMessage.from_dict(data)

    async def batch_receive_message(self, num_of_msg: int,
                                    polling_wait_seconds: int = 0) -> list[QueueMessage]:
        """批量消费 1-16 条消息，每条消息带上外层响应的 code/message/requestId"""
        if not 1 <= num_of_msg <= MAX_BATCH_SIZE:
            raise CMQClientError(
                f"Invalid parameter: numOfMsg must be 1-{MAX_BATCH_SIZE}, got {num_of_msg}"
            )

        params = {"queueName": self.queue_name, "numOfMsg": str(num_of_msg)}
        timeout_ms = _receive_timeout(polling_wait_seconds, params)
        data = await invoke(self.client, "BatchReceiveMessage", params, timeout_ms)

        return parse_msg_info_list(data)

    # -------- 删除 --------

    async def delete_message(self, receipt_handle: str):
        """按 receiptHandle 确认一次消费。句柄过期时由服务端返回错误"""
        await invoke(self.client, "DeleteMessage", {
            "queueName": self.queue_name,
            "receiptHandle": receipt_handle,
        })

    async def batch_delete_message(self, receipt_handles: Sequence[str]):
        """批量删除，列表为空时直接返回，不发请求"""
        if not receipt_handles:
            return

        params = {"queueName": self.queue_name}
        for i, handle in enumerate(receipt_handles, start=1):
            params[f"receiptHandle.{i}"] = handle
        await invoke(self.client, "BatchDeleteMessage", params)
