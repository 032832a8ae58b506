"""
CMQ 命令行工具

用法:
    python -m tencentcloud_cmq list-queues
    python -m tencentcloud_cmq create-queue orders --visibility-timeout 60
    python -m tencentcloud_cmq send orders "hello" --delay 5
    python -m tencentcloud_cmq receive orders --wait 10 --delete
    python -m tencentcloud_cmq --config prod.yaml --env /path/to/.env attributes orders

启动流程:
    1. 解析命令行参数
    2. 加载 .env 环境变量（CMQ_SECRET_ID / CMQ_SECRET_KEY）
    3. 读取 config.yaml，初始化日志
    4. 执行子命令，结果以 JSON 输出到标准输出
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from .account import Account
from .config import CMQConfig, credentials_from_env, load_env, setup_logging
from .exceptions import CMQError
from .models import QueueMeta


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="tencentcloud_cmq",
        description="腾讯云消息队列 CMQ 命令行工具",
    )
    p.add_argument("--config", default="config.yaml", help="配置文件路径 (默认: config.yaml)")
    p.add_argument("--env", default=None, help=".env 文件路径 (默认: 当前目录下的 .env)")
    p.add_argument("--log-dir", default=None, help="日志输出目录，不指定则仅输出到控制台")
    p.add_argument("-v", "--verbose", action="store_true", help="输出 DEBUG 日志")

    sub = p.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-queue", help="创建队列")
    create.add_argument("name")
    create.add_argument("--max-msg-heap-num", type=int, default=0)
    create.add_argument("--polling-wait-seconds", type=int, default=0)
    create.add_argument("--visibility-timeout", type=int, default=0)
    create.add_argument("--max-msg-size", type=int, default=0)
    create.add_argument("--msg-retention-seconds", type=int, default=0)
    create.add_argument("--rewind-seconds", type=int, default=0)

    delete = sub.add_parser("delete-queue", help="删除队列")
    delete.add_argument("name")

    ls = sub.add_parser("list-queues", help="列出队列")
    ls.add_argument("--search", default="")
    ls.add_argument("--offset", type=int, default=-1)
    ls.add_argument("--limit", type=int, default=-1)

    attrs = sub.add_parser("attributes", help="查看队列属性")
    attrs.add_argument("name")

    send = sub.add_parser("send", help="发送消息")
    send.add_argument("name")
    send.add_argument("body")
    send.add_argument("--delay", type=int, default=0, help="延迟可见秒数")

    recv = sub.add_parser("receive", help="消费一条消息")
    recv.add_argument("name")
    recv.add_argument("--wait", type=int, default=0, help="长轮询等待秒数")
    recv.add_argument("--delete", action="store_true", help="消费后立即删除")

    ack = sub.add_parser("delete-message", help="按 receiptHandle 删除消息")
    ack.add_argument("name")
    ack.add_argument("receipt_handle")

    return p.parse_args(argv)


def _meta_from_args(args) -> QueueMeta:
    # 未指定的属性为 0，不会下发
    return QueueMeta(
        max_msg_heap_num=args.max_msg_heap_num,
        polling_wait_seconds=args.polling_wait_seconds,
        visibility_timeout=args.visibility_timeout,
        max_msg_size=args.max_msg_size,
        msg_retention_seconds=args.msg_retention_seconds,
        rewind_seconds=args.rewind_seconds,
    )


async def run_command(account: Account, args) -> object:
    """执行一个子命令，返回可 JSON 序列化的结果"""
    if args.command == "create-queue":
        queue_id = await account.create_queue(args.name, _meta_from_args(args))
        return {"queueId": queue_id}

    if args.command == "delete-queue":
        await account.delete_queue(args.name)
        return {"ok": True}

    if args.command == "list-queues":
        total, queues = await account.list_queue(args.search, args.offset, args.limit)
        return {"totalCount": total, "queueList": [asdict(q) for q in queues]}

    queue = account.get_queue(args.name)

    if args.command == "attributes":
        meta = await queue.get_attributes()
        return meta.to_dict()

    if args.command == "send":
        msg_id = await queue.send_message(args.body, args.delay)
        return {"msgId": msg_id}

    if args.command == "receive":
        msg = await queue.receive_message(args.wait)
        if args.delete:
            await queue.delete_message(msg.receipt_handle)
        return msg.to_dict()

    if args.command == "delete-message":
        await queue.delete_message(args.receipt_handle)
        return {"ok": True}

    raise ValueError(f"unknown command: {args.command}")


async def main(argv=None) -> int:
    args = parse_args(argv)

    load_env(args.env)
    config = CMQConfig.from_yaml(args.config)
    level = logging.DEBUG if args.verbose else config.log.level.upper()
    setup_logging(log_dir=args.log_dir or config.log.dir, level=level)

    try:
        secret_id, secret_key = credentials_from_env()
        async with Account.from_config(config, secret_id, secret_key) as account:
            result = await run_command(account, args)
    except CMQError as e:
        print(str(e), file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
