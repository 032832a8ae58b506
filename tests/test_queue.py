import pytest

from fake_server import ERR_BATCH_DELETE, ERR_NO_MESSAGE, ERR_QUEUE_NOT_EXIST, ERR_RECEIPT_HANDLE
from tencentcloud_cmq import QueueMeta
from tencentcloud_cmq.exceptions import CMQClientError, CMQServerError
from tencentcloud_cmq.queue import DEFAULT_RECEIVE_TIMEOUT_MS, MAX_BATCH_SIZE


# -------- 队列属性 --------

@pytest.mark.asyncio
async def test_get_attributes(queue, cmq_server):
    await queue.send_message("a")
    await queue.send_message("b", delay_seconds=60)

    meta = await queue.get_attributes()

    assert cmq_server.requests[-1]["Action"] == "GetQueueAttributes"
    assert cmq_server.requests[-1]["queueName"] == "orders"
    assert meta.visibility_timeout == 30
    assert meta.max_msg_size == 65536
    assert meta.msg_retention_seconds == 345600
    assert meta.active_msg_num == 1
    assert meta.delay_msg_num == 1
    assert meta.create_time > 0


@pytest.mark.asyncio
async def test_set_attributes_sends_only_positive_fields(queue, cmq_server):
    await queue.set_attributes(QueueMeta(max_msg_heap_num=0, polling_wait_seconds=0,
                                         visibility_timeout=120, max_msg_size=0,
                                         msg_retention_seconds=0, rewind_seconds=0))

    sent = cmq_server.requests[-1]
    assert sent["Action"] == "SetQueueAttributes"
    assert sent["visibilityTimeout"] == "120"
    assert "maxMsgSize" not in sent
    assert "pollingWaitSeconds" not in sent

    meta = await queue.get_attributes()
    assert meta.visibility_timeout == 120
    assert meta.max_msg_size == 65536


@pytest.mark.asyncio
async def test_attributes_of_missing_queue(account):
    with pytest.raises(CMQServerError) as exc_info:
        await account.get_queue("missing").get_attributes()
    assert exc_info.value.code == ERR_QUEUE_NOT_EXIST


# -------- 发送 --------

@pytest.mark.asyncio
async def test_send_message(queue, cmq_server):
    msg_id = await queue.send_message("hello")

    sent = cmq_server.requests[-1]
    assert sent["msgBody"] == "hello"
    assert sent["delaySeconds"] == "0"
    assert cmq_server.messages("orders")[0]["msgId"] == msg_id


@pytest.mark.asyncio
async def test_delayed_message_is_not_visible_yet(queue, cmq_server):
    await queue.send_message("later", delay_seconds=10)
    assert cmq_server.requests[-1]["delaySeconds"] == "10"

    with pytest.raises(CMQServerError) as exc_info:
        await queue.receive_message()
    assert exc_info.value.code == ERR_NO_MESSAGE

    cmq_server.advance(10)
    msg = await queue.receive_message()
    assert msg.msg_body == "later"


@pytest.mark.asyncio
async def test_batch_send_keys_and_order(queue, cmq_server):
    bodies = [f"body-{i}" for i in range(1, 12)]
    ids = await queue.batch_send_message(bodies, delay_seconds=3)

    sent = cmq_server.requests[-1]
    assert sent["msgBody.1"] == "body-1"
    assert sent["msgBody.11"] == "body-11"
    assert sent["delaySeconds"] == "3"
    stored = cmq_server.messages("orders")
    assert [m["msgBody"] for m in stored] == bodies
    assert ids == [m["msgId"] for m in stored]


@pytest.mark.asyncio
async def test_batch_send_accepts_sixteen(queue, cmq_server):
    ids = await queue.batch_send_message([str(i) for i in range(MAX_BATCH_SIZE)])
    assert len(ids) == 16
    assert cmq_server.actions() == ["BatchSendMessage"]


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [0, 17])
async def test_batch_send_rejects_bad_size(queue, cmq_server, size):
    with pytest.raises(CMQClientError):
        await queue.batch_send_message(["x"] * size)
    assert cmq_server.requests == []


@pytest.mark.asyncio
async def test_batch_send_parses_string_msg_list(queue, cmq_server):
    cmq_server.responses.append({"code": 0, "message": "", "requestId": "r", "msgList": ["m-1", "m-2"]})
    assert await queue.batch_send_message(["a", "b"]) == ["m-1", "m-2"]


# -------- 消费 --------

@pytest.mark.asyncio
async def test_receive_without_wait_uses_default_timeout(queue, cmq_server, http):
    await queue.send_message("hello")
    msg = await queue.receive_message(0)

    sent = cmq_server.requests[-1]
    assert "pollingWaitSeconds" not in sent
    assert "UserpollingWaitSeconds" not in sent
    assert http.timeouts[-1] == DEFAULT_RECEIVE_TIMEOUT_MS == 30000
    assert msg.msg_body == "hello"


@pytest.mark.asyncio
async def test_receive_with_wait_extends_timeout(queue, cmq_server, http):
    await queue.send_message("hello")
    await queue.receive_message(5)

    assert cmq_server.requests[-1]["pollingWaitSeconds"] == "5"
    assert http.timeouts[-1] >= 5000


@pytest.mark.asyncio
async def test_receive_negative_wait_is_treated_as_default(queue, cmq_server, http):
    await queue.send_message("hello")
    await queue.receive_message(-3)
    assert "pollingWaitSeconds" not in cmq_server.requests[-1]
    assert http.timeouts[-1] == 30000


@pytest.mark.asyncio
async def test_receive_from_empty_queue_is_server_error(queue):
    with pytest.raises(CMQServerError) as exc_info:
        await queue.receive_message(1)
    assert exc_info.value.code == ERR_NO_MESSAGE


@pytest.mark.asyncio
async def test_receive_returns_message_fields(queue, cmq_server):
    msg_id = await queue.send_message("hello")
    msg = await queue.receive_message()

    assert msg.code == 0
    assert msg.request_id
    assert msg.msg_id == msg_id
    assert msg.receipt_handle
    assert msg.dequeue_count == 1
    assert msg.first_dequeue_time >= msg.enqueue_time
    assert msg.next_visible_time >= msg.enqueue_time + 30


@pytest.mark.asyncio
async def test_batch_receive(queue, cmq_server, http):
    await queue.batch_send_message(["a", "b", "c"])
    messages = await queue.batch_receive_message(2, 3)

    sent = cmq_server.requests[-1]
    assert sent["numOfMsg"] == "2"
    assert sent["pollingWaitSeconds"] == "3"
    assert http.timeouts[-1] >= 3000
    assert [m.msg_body for m in messages] == ["a", "b"]
    request_ids = {m.request_id for m in messages}
    assert len(request_ids) == 1 and request_ids != {""}
    assert all(m.code == 0 for m in messages)


@pytest.mark.asyncio
@pytest.mark.parametrize("num", [0, 17])
async def test_batch_receive_rejects_bad_count(queue, cmq_server, num):
    with pytest.raises(CMQClientError):
        await queue.batch_receive_message(num)
    assert cmq_server.requests == []


# -------- 删除与可见性 --------

@pytest.mark.asyncio
async def test_receive_then_delete(queue, cmq_server):
    await queue.send_message("hello")
    msg = await queue.receive_message()
    await queue.delete_message(msg.receipt_handle)

    assert cmq_server.requests[-1]["receiptHandle"] == msg.receipt_handle
    assert cmq_server.messages("orders") == []


@pytest.mark.asyncio
async def test_received_message_is_invisible_until_timeout(queue, cmq_server):
    msg_id = await queue.send_message("hello")
    first = await queue.receive_message()

    with pytest.raises(CMQServerError):
        await queue.receive_message()

    cmq_server.advance(31)
    second = await queue.receive_message()
    assert second.msg_id == msg_id
    assert second.dequeue_count == 2
    assert second.receipt_handle != first.receipt_handle

    with pytest.raises(CMQServerError) as exc_info:
        await queue.delete_message(first.receipt_handle)
    assert exc_info.value.code == ERR_RECEIPT_HANDLE

    await queue.delete_message(second.receipt_handle)
    assert cmq_server.messages("orders") == []


@pytest.mark.asyncio
async def test_message_expires_after_retention(queue, cmq_server):
    await queue.set_attributes(QueueMeta(msg_retention_seconds=60, max_msg_heap_num=0,
                                         visibility_timeout=0, max_msg_size=0))
    await queue.send_message("short-lived")
    cmq_server.advance(61)

    with pytest.raises(CMQServerError) as exc_info:
        await queue.receive_message()
    assert exc_info.value.code == ERR_NO_MESSAGE


@pytest.mark.asyncio
async def test_batch_delete_empty_makes_no_request(queue, cmq_server):
    await queue.batch_delete_message([])
    assert cmq_server.requests == []


@pytest.mark.asyncio
async def test_batch_delete(queue, cmq_server):
    await queue.batch_send_message(["a", "b", "c"])
    messages = await queue.batch_receive_message(3)
    handles = [m.receipt_handle for m in messages]

    await queue.batch_delete_message(handles)

    sent = cmq_server.requests[-1]
    assert sent["receiptHandle.1"] == handles[0]
    assert sent["receiptHandle.3"] == handles[2]
    assert cmq_server.messages("orders") == []


@pytest.mark.asyncio
async def test_batch_delete_failure_carries_error_list(queue, cmq_server):
    await queue.send_message("a")
    msg = await queue.receive_message()

    with pytest.raises(CMQServerError) as exc_info:
        await queue.batch_delete_message([msg.receipt_handle, "stale-handle"])

    err = exc_info.value
    assert err.code == ERR_BATCH_DELETE
    assert [e["receiptHandle"] for e in err.error_list] == ["stale-handle"]
