import json

import pytest

from fake_server import SECRET_ID, SECRET_KEY
from tencentcloud_cmq.__main__ import main, parse_args


@pytest.fixture
def cli_env(cmq_server, tmp_path, monkeypatch):
    monkeypatch.setenv("CMQ_SECRET_ID", SECRET_ID)
    monkeypatch.setenv("CMQ_SECRET_KEY", SECRET_KEY)
    config = tmp_path / "config.yaml"
    config.write_text(f"endpoint:\n  endpoint: {cmq_server.endpoint}\n", encoding="utf-8")
    return ["--config", str(config), "--env", str(tmp_path / "missing.env")]


def test_parse_args_requires_command():
    with pytest.raises(SystemExit):
        parse_args([])


def test_parse_args_create_queue_defaults():
    args = parse_args(["create-queue", "orders"])
    assert args.name == "orders"
    assert args.visibility_timeout == 0
    assert args.config == "config.yaml"


@pytest.mark.asyncio
async def test_queue_lifecycle(cli_env, cmq_server, capsys):
    assert await main(cli_env + ["create-queue", "orders", "--visibility-timeout", "60"]) == 0
    created = json.loads(capsys.readouterr().out)
    assert created["queueId"] == cmq_server.queues["orders"]["queueId"]
    assert cmq_server.requests[-1]["visibilityTimeout"] == "60"
    assert "maxMsgSize" not in cmq_server.requests[-1]

    assert await main(cli_env + ["send", "orders", "hello", "--delay", "0"]) == 0
    sent = json.loads(capsys.readouterr().out)

    assert await main(cli_env + ["receive", "orders", "--delete"]) == 0
    received = json.loads(capsys.readouterr().out)
    assert received["msgId"] == sent["msgId"]
    assert received["msgBody"] == "hello"
    assert cmq_server.messages("orders") == []

    assert await main(cli_env + ["list-queues"]) == 0
    listed = json.loads(capsys.readouterr().out)
    assert listed["totalCount"] == 1
    assert listed["queueList"][0]["queue_name"] == "orders"

    assert await main(cli_env + ["attributes", "orders"]) == 0
    attrs = json.loads(capsys.readouterr().out)
    assert attrs["visibilityTimeout"] == 60

    assert await main(cli_env + ["delete-queue", "orders"]) == 0
    assert cmq_server.queues == {}


@pytest.mark.asyncio
async def test_server_error_exits_with_status_1(cli_env, capsys):
    assert await main(cli_env + ["delete-queue", "missing"]) == 1
    captured = capsys.readouterr()
    assert "code=4440" in captured.err
    assert captured.out == ""


@pytest.mark.asyncio
async def test_missing_credentials_exit_with_status_1(cli_env, monkeypatch, capsys):
    monkeypatch.delenv("CMQ_SECRET_KEY")
    assert await main(cli_env + ["list-queues"]) == 1
    assert "CMQ_SECRET_KEY" in capsys.readouterr().err
