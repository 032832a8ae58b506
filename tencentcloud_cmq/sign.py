"""请求签名：拼接待签名串，计算 HMAC 并做 base64 编码"""

import base64
import hashlib
import hmac
from typing import Mapping

from .exceptions import CMQClientError

_DIGESTS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


def make_sign_plain_text(params: Mapping[str, str], method: str,
                         host: str, path: str) -> str:
    """
    拼接待签名串: METHOD + host + path + "?" + k1=v1&k2=v2...

    键按字符序升序排列，值不做 URL 编码（编码在发送时进行）。
    """
    query = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return f"{method.upper()}{host}{path}?{query}"


def sign(plain_text: str, secret_key: str, method: str = "sha1") -> str:
    digest = _DIGESTS.get(method)
    if digest is None:
        raise CMQClientError(f"Invalid parameter: unsupported sign method {method!r}")
    mac = hmac.new(secret_key.encode("utf-8"), plain_text.encode("utf-8"), digest)
    return base64.b64encode(mac.digest()).decode("ascii")
