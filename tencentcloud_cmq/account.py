"""CMQ 账号级操作：队列的创建、删除、列举，以及获取 Queue 对象"""

import logging
from typing import TYPE_CHECKING, Optional

from .client import CMQClient
from .exceptions import CMQClientError
from .http import CMQHttp
from .models import CreateQueueResult, ListQueueResult, QueueMeta, QueueSummary
from .queue import Queue, invoke

if TYPE_CHECKING:
    from .config import CMQConfig

logger = logging.getLogger("tencent-cmq")

DEFAULT_ENDPOINT = "http://cmq-queue-bj.api.tencentyun.com"
DEFAULT_PATH = "/v2/index.php"


class Account:
    """
    CMQ 账号

    用法:
        async with Account(secret_id, secret_key,
                           endpoint="http://cmq-queue-gz.api.tencentyun.com") as account:
            await account.create_queue("orders")
            queue = account.get_queue("orders")
            msg_id = await queue.send_message("hello")

    同一个 Account 可被多个协程并发使用，每次调用独立构造参数。
    """

    def __init__(
        self,
        secret_id: str,
        secret_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        path: str = DEFAULT_PATH,
        method: str = "POST",
        *,
        sign_method: str = "sha1",
        http: Optional[CMQHttp] = None,
    ):
        self.client = CMQClient(endpoint, path, secret_id, secret_key,
                                method, sign_method, http)

    @classmethod
    def from_config(cls, config: "CMQConfig", secret_id: str, secret_key: str) -> "Account":
        """根据 CMQConfig 构造，凭据单独传入（通常来自环境变量）"""
        http = CMQHttp(
            config.http.timeout_ms,
            proxy=config.http.proxy,
            verify_ssl=config.http.verify_ssl,
        )
        return cls(
            secret_id,
            secret_key,
            config.endpoint.endpoint,
            config.endpoint.path,
            config.endpoint.method,
            sign_method=config.endpoint.sign_method,
            http=http,
        )

    @property
    def sign_method(self) -> str:
        return self.client.sign_method

    @sign_method.setter
    def sign_method(self, value: str):
        self.client.sign_method = value

    # -------- 队列管理 --------

    async def create_queue(self, queue_name: str, meta: Optional[QueueMeta] = None) -> str:
        """
        创建队列，返回服务端生成的 queueId。

        meta 中取值 <= 0 的属性不下发，由服务端使用默认值。
        """
        if not queue_name:
            raise CMQClientError("Invalid parameter: queueName is empty")

        params = {"queueName": queue_name}
        if meta is not None:
            params.update(meta.to_params())

        data = await invoke(self.client, "CreateQueue", params)
        result = CreateQueueResult.from_dict(data)
        logger.info("队列已创建: %s (%s)", queue_name, result.queue_id)
        return result.queue_id

    async def delete_queue(self, queue_name: str):
        if not queue_name:
            raise CMQClientError("Invalid parameter: queueName is empty")
        await invoke(self.client, "DeleteQueue", {"queueName": queue_name})
        logger.info("队列已删除: %s", queue_name)

    async def list_queue(
        self,
        search_word: str = "",
        offset: int = -1,
        limit: int = -1,
    ) -> tuple[int, list[QueueSummary]]:
        """
        列出队列。

        Args:
            search_word: 按队列名过滤，空串表示不过滤
            offset:      分页起始位置，< 0 时不下发
            limit:       分页大小，<= 0 时不下发

        Returns:
            (队列总数, 本页队列列表)
        """
        params = {}
        if search_word:
            params["searchWord"] = search_word
        if offset >= 0:
            params["offset"] = str(offset)
        if limit > 0:
            params["limit"] = str(limit)

        data = await invoke(self.client, "ListQueue", params)
        result = ListQueueResult.from_dict(data)
        return result.total_count, result.queue_list

    def get_queue(self, queue_name: str) -> Queue:
        """返回绑定该队列名的 Queue 对象，不发请求"""
        return Queue(queue_name, self.client)

    # -------- 启停 --------

    async def close(self):
        await self.client.close()

    async def __aenter__(self) -> "Account":
        return self

    async def __aexit__(self, *exc):
        await self.close()
