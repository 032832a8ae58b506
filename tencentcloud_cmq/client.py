"""
CMQ 请求客户端

每次调用:
    1. 合并公共参数（Action / Nonce / SecretId / Timestamp / RequestClient / SignatureMethod）
    2. 按排序后的参数拼接待签名串并签名，追加 Signature
    3. 通过 CMQHttp 发送，原样返回响应正文

响应中的 code 由 Account / Queue 解释，这里不做判断。
"""

import logging
import random
import time
from typing import Mapping, Optional
from urllib.parse import quote, urlencode, urlparse

from . import __version__
from .exceptions import CMQClientError
from .http import CMQHttp
from .sign import make_sign_plain_text, sign

logger = logging.getLogger("tencent-cmq")

REQUEST_CLIENT = f"SDK_Python_{__version__}"
SIGN_METHODS = ("sha1", "sha256")


class CMQClient:
    def __init__(
        self,
        host: str,
        path: str,
        secret_id: str,
        secret_key: str,
        method: str = "POST",
        sign_method: str = "sha1",
        http: Optional[CMQHttp] = None,
    ):
        host = host.strip().rstrip("/")
        # 无 scheme 时自动补全（如 "cmq-queue-bj.api.tencentyun.com" -> "http://..."）
        if host and not host.startswith(("http://", "https://")):
            host = "http://" + host
        parsed = urlparse(host)
        if not parsed.netloc:
            raise CMQClientError(f"Invalid parameter: endpoint {host!r}")
        # 待签名串只含 host 与 path 参数，接入点不能再带路径
        if parsed.path or parsed.query:
            raise CMQClientError(f"Invalid parameter: endpoint {host!r} must not contain a path")
        if method.upper() not in ("GET", "POST"):
            raise CMQClientError(f"Invalid parameter: method {method!r}, expected GET or POST")

        self.endpoint = host
        self.host = parsed.netloc
        self.path = path
        self.method = method.upper()
        self._secret_id = secret_id
        self._secret_key = secret_key
        self.sign_method = sign_method
        self.http = http or CMQHttp()

    @property
    def secret_id(self) -> str:
        return self._secret_id

    @property
    def sign_method(self) -> str:
        return self._sign_method

    @sign_method.setter
    def sign_method(self, value: str):
        value = value.lower()
        if value not in SIGN_METHODS:
            raise CMQClientError(f"Invalid parameter: sign method {value!r}, expected sha1 or sha256")
        self._sign_method = value

    def build_params(self, action: str, params: Mapping[str, object]) -> dict[str, str]:
        """合并公共参数并签名，返回最终发送的参数（不修改传入的 params）"""
        final = {key: str(value) for key, value in params.items()}
        final["Action"] = action
        final["Nonce"] = str(random.randint(0, 1000000))
        final["SecretId"] = self._secret_id
        final["Timestamp"] = str(int(time.time()))
        final["RequestClient"] = REQUEST_CLIENT
        if self._sign_method == "sha256":
            final["SignatureMethod"] = "HmacSHA256"

        plain_text = make_sign_plain_text(final, self.method, self.host, self.path)
        final["Signature"] = sign(plain_text, self._secret_key, self._sign_method)
        return final

    async def call(
        self,
        action: str,
        params: Mapping[str, object],
        timeout_ms: Optional[int] = None,
    ) -> str:
        """
        调用一个 CMQ 接口，返回原始响应正文。

        Args:
            action:     接口名，如 CreateQueue
            params:     接口参数
            timeout_ms: 本次请求的超时（毫秒），None 使用传输层默认值

        Raises:
            CMQHttpError: 网络错误、超时或非 2xx 状态码
        """
        final = self.build_params(action, params)
        url = self.endpoint + self.path
        body = urlencode(final, quote_via=quote)
        if self.method == "GET":
            url = f"{url}?{body}"
            body = ""

        logger.debug("%s %s%s action=%s", self.method, self.host, self.path, action)
        resp = await self.http.request(self.method, url, body, timeout_ms)
        logger.debug("%s → %s %s", action, resp.status, resp.body[:200])
        return resp.body

    async def close(self):
        await self.http.close()
