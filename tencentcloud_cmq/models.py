"""
CMQ 接口数据结构

所有模型基于标准库 dataclass，每个模型通过 from_dict 从服务端 JSON 解析，
字段名与接口字段一一对应（接口为 camelCase，模型为 snake_case）。

解析规则:
    - code 是必需字段，缺失或不是整数时抛出 CMQParseError
    - message / requestId 缺失时视为空串
    - 未知字段忽略
    - 整数字段只接受整数或纯数字字符串，不做宽松转换
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import CMQParseError, CMQServerError

_INT_RE = re.compile(r"-?[0-9]+")


def _parse_int(data: dict, key: str, default: Optional[int] = None) -> int:
    value = data.get(key)
    if value is None:
        if default is None:
            raise CMQParseError(f"missing required field {key!r}")
        return default
    # bool 是 int 的子类，需单独排除
    if isinstance(value, bool):
        raise CMQParseError(f"field {key!r} is not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value):
        return int(value)
    raise CMQParseError(f"field {key!r} is not an integer: {value!r}")


def _parse_str(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise CMQParseError(f"field {key!r} is not a string: {value!r}")
    return value


def parse_response(text: str) -> dict:
    """把原始响应解析为 JSON 对象，并校验 code 字段存在且为整数"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CMQParseError(f"response is not valid JSON: {e}", text) from None
    if not isinstance(data, dict):
        raise CMQParseError("response is not a JSON object", text)
    _parse_int(data, "code")
    return data


def check_response(data: dict) -> None:
    """code != 0 时抛出 CMQServerError"""
    code = _parse_int(data, "code")
    if code != 0:
        error_list = data.get("errorList")
        raise CMQServerError(
            code,
            _parse_str(data, "message"),
            _parse_str(data, "requestId"),
            error_list if isinstance(error_list, list) else None,
        )


@dataclass
class Envelope:
    """
    所有接口返回的公共字段

    Attributes:
        code:       0 表示成功，非 0 为服务端错误码
        message:    错误描述
        request_id: 请求 ID
    """
    code: int = 0
    message: str = ""
    request_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Envelope":
        return cls(
            code=_parse_int(data, "code"),
            message=_parse_str(data, "message"),
            request_id=_parse_str(data, "requestId"),
        )


# 队列属性默认值
DEFAULT_MAX_MSG_HEAP_NUM = 10000000
DEFAULT_POLLING_WAIT_SECONDS = 0
DEFAULT_VISIBILITY_TIMEOUT = 30
DEFAULT_MAX_MSG_SIZE = 65536
DEFAULT_MSG_RETENTION_SECONDS = 345600
DEFAULT_REWIND_SECONDS = 0

# (属性名, 接口字段名)
_QUEUE_META_SETTABLE = (
    ("max_msg_heap_num", "maxMsgHeapNum"),
    ("polling_wait_seconds", "pollingWaitSeconds"),
    ("visibility_timeout", "visibilityTimeout"),
    ("max_msg_size", "maxMsgSize"),
    ("msg_retention_seconds", "msgRetentionSeconds"),
    ("rewind_seconds", "rewindSeconds"),
)

_QUEUE_META_REPORTED = (
    ("create_time", "createTime"),
    ("last_modify_time", "lastModifyTime"),
    ("active_msg_num", "activeMsgNum"),
    ("inactive_msg_num", "inactiveMsgNum"),
    ("rewind_msg_num", "rewindmsgNum"),
    ("min_msg_time", "minMsgTime"),
    ("delay_msg_num", "delayMsgNum"),
)


@dataclass
class QueueMeta(Envelope):
    """
    队列属性

    可设置的属性（取值 <= 0 时不下发，由服务端使用默认值或保持不变）:
        max_msg_heap_num:      最大堆积消息数，取值 1,000,000 - 100,000,000
        polling_wait_seconds:  消息接收长轮询等待时间，取值 0 - 30 秒
        visibility_timeout:    消息可见性超时，取值 1 - 43200 秒
        max_msg_size:          消息最大长度，取值 1024 - 65536 字节
        msg_retention_seconds: 消息保留周期，取值 60 - 1296000 秒
        rewind_seconds:        消息回溯时间，取值 0 - msg_retention_seconds

    服务端返回的只读属性:
        create_time / last_modify_time / active_msg_num / inactive_msg_num /
        rewind_msg_num / min_msg_time / delay_msg_num
    """
    max_msg_heap_num: int = DEFAULT_MAX_MSG_HEAP_NUM
    polling_wait_seconds: int = DEFAULT_POLLING_WAIT_SECONDS
    visibility_timeout: int = DEFAULT_VISIBILITY_TIMEOUT
    max_msg_size: int = DEFAULT_MAX_MSG_SIZE
    msg_retention_seconds: int = DEFAULT_MSG_RETENTION_SECONDS
    rewind_seconds: int = DEFAULT_REWIND_SECONDS
    create_time: int = 0
    last_modify_time: int = 0
    active_msg_num: int = 0
    inactive_msg_num: int = 0
    rewind_msg_num: int = 0
    min_msg_time: int = 0
    delay_msg_num: int = 0

    def to_params(self) -> dict[str, str]:
        """可设置属性中取值为正的部分，作为请求参数"""
        params = {}
        for attr, key in _QUEUE_META_SETTABLE:
            value = getattr(self, attr)
            if value > 0:
                params[key] = str(value)
        return params

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "requestId": self.request_id,
        }
        for attr, key in _QUEUE_META_SETTABLE + _QUEUE_META_REPORTED:
            data[key] = getattr(self, attr)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "QueueMeta":
        meta = cls(
            code=_parse_int(data, "code"),
            message=_parse_str(data, "message"),
            request_id=_parse_str(data, "requestId"),
        )
        for attr, key in _QUEUE_META_SETTABLE + _QUEUE_META_REPORTED:
            setattr(meta, attr, _parse_int(data, key, getattr(meta, attr)))
        # 部分接口版本返回 rewindMsgNum
        if "rewindmsgNum" not in data and "rewindMsgNum" in data:
            meta.rewind_msg_num = _parse_int(data, "rewindMsgNum")
        return meta


@dataclass
class QueueMessage(Envelope):
    """
    队列中的一条消息

    Attributes:
        msg_id:             服务端生成的消息唯一 ID
        receipt_handle:     本次消费的句柄，每次被消费都会变化，删除消息时使用
        msg_body:           消息正文
        enqueue_time:       入队时间（Unix 秒）
        next_visible_time:  下次可见时间（Unix 秒）
        first_dequeue_time: 第一次被消费的时间（Unix 秒）
        dequeue_count:      被消费的次数
    """
    msg_id: str = ""
    receipt_handle: str = ""
    msg_body: str = ""
    enqueue_time: int = 0
    next_visible_time: int = 0
    first_dequeue_time: int = 0
    dequeue_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "requestId": self.request_id,
            "msgId": self.msg_id,
            "receiptHandle": self.receipt_handle,
            "msgBody": self.msg_body,
            "enqueueTime": self.enqueue_time,
            "nextVisibleTime": self.next_visible_time,
            "firstDequeueTime": self.first_dequeue_time,
            "dequeueCount": self.dequeue_count,
        }

    @classmethod
    def from_dict(cls, data: dict, envelope: Optional[Envelope] = None) -> "QueueMessage":
        """
        解析单条消息。

        Args:
            data:     消息字段
            envelope: 批量消费时列表中的元素不带 code，使用外层的公共字段
        """
        if envelope is None:
            envelope = Envelope.from_dict(data)
        return cls(
            code=envelope.code,
            message=envelope.message,
            request_id=envelope.request_id,
            msg_id=_parse_str(data, "msgId"),
            receipt_handle=_parse_str(data, "receiptHandle"),
            msg_body=_parse_str(data, "msgBody"),
            enqueue_time=_parse_int(data, "enqueueTime", 0),
            next_visible_time=_parse_int(data, "nextVisibleTime", 0),
            first_dequeue_time=_parse_int(data, "firstDequeueTime", 0),
            dequeue_count=_parse_int(data, "dequeueCount", 0),
        )


@dataclass
class QueueSummary:
    """ListQueue 返回的队列摘要"""
    queue_id: str
    queue_name: str

    @classmethod
    def from_dict(cls, data: dict) -> "QueueSummary":
        return cls(
            queue_id=_parse_str(data, "queueId"),
            queue_name=_parse_str(data, "queueName"),
        )


@dataclass
class ListQueueResult(Envelope):
    total_count: int = 0
    queue_list: list[QueueSummary] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ListQueueResult":
        queue_list = data.get("queueList") or []
        if not isinstance(queue_list, list):
            raise CMQParseError(f"field 'queueList' is not a list: {queue_list!r}")
        return cls(
            code=_parse_int(data, "code"),
            message=_parse_str(data, "message"),
            request_id=_parse_str(data, "requestId"),
            total_count=_parse_int(data, "totalCount", 0),
            queue_list=[QueueSummary.from_dict(item) for item in queue_list],
        )


@dataclass
class CreateQueueResult(Envelope):
    queue_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CreateQueueResult":
        return cls(
            code=_parse_int(data, "code"),
            message=_parse_str(data, "message"),
            request_id=_parse_str(data, "requestId"),
            queue_id=_parse_str(data, "queueId"),
        )


@dataclass
class SendMessageResult(Envelope):
    msg_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SendMessageResult":
        return cls(
            code=_parse_int(data, "code"),
            message=_parse_str(data, "message"),
            request_id=_parse_str(data, "requestId"),
            msg_id=_parse_str(data, "msgId"),
        )


def parse_msg_info_list(data: dict) -> list[QueueMessage]:
    """解析 BatchReceiveMessage 返回的 msgInfoList，每条消息继承外层公共字段"""
    envelope = Envelope.from_dict(data)
    msg_info_list = data.get("msgInfoList") or []
    if not isinstance(msg_info_list, list):
        raise CMQParseError(f"field 'msgInfoList' is not a list: {msg_info_list!r}")
    return [QueueMessage.from_dict(item, envelope) for item in msg_info_list]


def parse_msg_id_list(data: dict) -> list[str]:
    """
    解析 BatchSendMessage 返回的 msgList。

    元素可能是 {"msgId": "..."} 对象，也可能直接是 ID 字符串。
    """
    msg_list = data.get("msgList") or []
    if not isinstance(msg_list, list):
        raise CMQParseError(f"field 'msgList' is not a list: {msg_list!r}")
    ids = []
    for item in msg_list:
        if isinstance(item, dict):
            ids.append(_parse_str(item, "msgId"))
        elif isinstance(item, str):
            ids.append(item)
        else:
            raise CMQParseError(f"unexpected msgList item: {item!r}")
    return ids
