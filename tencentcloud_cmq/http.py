"""
CMQ HTTP 传输层

负责:
    - 按 GET/POST 发送已签名的请求，返回 (status, headers, body)
    - 单次请求超时（长轮询消费时由调用方放宽）
    - 代理与 TLS 校验配置

gzip/deflate 解压由 aiohttp 自动完成。
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

import aiohttp

from .exceptions import CMQHttpError, CMQParseError

logger = logging.getLogger("tencent-cmq")

DEFAULT_TIMEOUT_MS = 10000
USER_AGENT = "tencentcloud-cmq-python"


@dataclass
class HttpResponse:
    """单次请求的响应，每次调用独立返回，不在传输对象上保存状态"""
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


class CMQHttp:
    """
    基于 aiohttp 的传输对象

    同一个实例可被多个协程共享，所有请求复用一个 ClientSession。
    证书校验默认开启，verify_ssl=False 需显式指定。
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        *,
        proxy: Optional[str] = None,
        verify_ssl: bool = True,
    ):
        self.timeout_ms = timeout_ms
        self.proxy = proxy
        self.verify_ssl = verify_ssl
        self._session: Optional[aiohttp.ClientSession] = None

        if not verify_ssl:
            logger.warning("已关闭 TLS 证书校验，仅应在测试环境中使用")

    # -------- 会话 --------

    @property
    def _http(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT, "Accept": "*/*"},
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "CMQHttp":
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -------- 请求 --------

    async def request(
        self,
        method: str,
        url: str,
        body: str = "",
        timeout_ms: Optional[int] = None,
    ) -> HttpResponse:
        """
        发送一次请求。

        Args:
            method:     POST 或 GET
            url:        完整地址，GET 时已带查询串
            body:       POST 时的表单编码请求体
            timeout_ms: 本次请求超时（毫秒），默认使用 self.timeout_ms

        Raises:
            CMQHttpError: 网络错误、超时或非 2xx 状态码
            CMQParseError: 响应正文不是合法的 UTF-8
        """
        timeout_ms = timeout_ms or self.timeout_ms
        kwargs = {
            "timeout": aiohttp.ClientTimeout(total=timeout_ms / 1000),
            "proxy": self.proxy,
        }
        if not self.verify_ssl:
            kwargs["ssl"] = False

        if method.upper() == "POST":
            kwargs["data"] = body.encode("utf-8")
            kwargs["headers"] = {"Content-Type": "application/x-www-form-urlencoded"}
            kwargs["allow_redirects"] = False
        else:
            kwargs["allow_redirects"] = True

        try:
            async with self._http.request(method.upper(), url, **kwargs) as resp:
                text = await resp.text(encoding="utf-8")
                response = HttpResponse(
                    status=resp.status,
                    headers=dict(resp.headers),
                    body=text,
                )
        except asyncio.TimeoutError:
            raise CMQHttpError(f"request timed out after {timeout_ms} ms") from None
        except aiohttp.ClientError as e:
            raise CMQHttpError(f"request failed: {e}") from e
        except UnicodeDecodeError as e:
            raise CMQParseError(f"response is not valid UTF-8: {e}") from None

        if not 200 <= response.status < 300:
            raise CMQHttpError(response.body[:200], status=response.status)
        return response
