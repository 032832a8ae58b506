"""
配置加载与日志配置

通过 config.yaml 管理接入点、传输和日志配置，
CMQ 凭据（CMQ_SECRET_ID / CMQ_SECRET_KEY）只由 .env 环境变量提供。

提供:
    CMQConfig.from_yaml()  — 读取 YAML 配置
    load_env()             — 从 .env 载入凭据，不覆盖已有环境变量
    credentials_from_env() — 读取凭据
    setup_logging()        — 命令行日志：stderr，可选同时写入日志目录
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .exceptions import CMQClientError


class EndpointConfig(BaseModel):
    endpoint: str = Field("http://cmq-queue-bj.api.tencentyun.com", description="接入点地址")
    path: str = Field("/v2/index.php", description="请求路径")
    method: Literal["GET", "POST"] = Field("POST", description="请求方式")
    sign_method: Literal["sha1", "sha256"] = Field("sha1", description="签名算法")


class HttpConfig(BaseModel):
    timeout_ms: int = Field(10000, gt=0, description="默认请求超时（毫秒）")
    proxy: Optional[str] = Field(None, description="HTTP 代理地址")
    verify_ssl: bool = Field(True, description="是否校验 TLS 证书")


class LogConfig(BaseModel):
    level: str = Field("INFO", description="日志级别")
    dir: Optional[str] = Field(None, description="日志输出目录，不指定则仅控制台")


class CMQConfig(BaseModel):
    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    log: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: str | Path = "config.yaml") -> "CMQConfig":
        p = Path(path)
        if not p.exists():
            return cls()
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)


def load_env(env_path: Optional[str] = None) -> bool:
    """
    把 .env 中的 CMQ_SECRET_ID / CMQ_SECRET_KEY 载入 os.environ。

    已存在的环境变量优先，不会被 .env 覆盖，便于在 CI 中直接注入凭据。

    Args:
        env_path: 命令行 --env 指定的路径，未指定时使用当前目录下的 .env

    Returns:
        是否从文件中读到了变量，文件不存在时为 False
    """
    path = Path(env_path) if env_path else Path.cwd() / ".env"
    return load_dotenv(path, override=False)


def credentials_from_env() -> tuple[str, str]:
    """读取 CMQ_SECRET_ID / CMQ_SECRET_KEY，缺失时抛出 CMQClientError"""
    secret_id = os.environ.get("CMQ_SECRET_ID", "")
    secret_key = os.environ.get("CMQ_SECRET_KEY", "")
    if not secret_id or not secret_key:
        raise CMQClientError("CMQ_SECRET_ID and CMQ_SECRET_KEY must be set")
    return secret_id, secret_key


def setup_logging(log_dir: Optional[str] = None, level: int | str = logging.INFO):
    """
    命令行工具的日志配置。

    标准输出只留给 JSON 结果，日志一律写到 stderr；
    指定 log_dir 时另外写入 cmq-YYYYMMDD_HHMMSS.log，便于排查长轮询等慢请求。
    库本身只通过 "tencent-cmq" logger 输出，不调用此函数。
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_dir:
        dir_path = Path(log_dir)
        dir_path.mkdir(parents=True, exist_ok=True)
        filename = datetime.now().strftime("cmq-%Y%m%d_%H%M%S.log")
        handlers.append(logging.FileHandler(dir_path / filename, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )
