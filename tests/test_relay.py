import asyncio

from fastapi.testclient import TestClient

from business.relay import BroadcastRelay


class FakeListener:
    def __init__(self, fail: bool = False):
        self.accepted = False
        self.received = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.received.append(data)


EVENT = {"sender": "u1", "receiver": "u2", "content": "hi", "media": None}


def test_publish_reaches_every_listener():
    async def scenario():
        relay = BroadcastRelay()
        listeners = [FakeListener() for _ in range(3)]
        for listener in listeners:
            await relay.connect(listener)

        delivered = await relay.publish(EVENT)
        return relay, listeners, delivered

    relay, listeners, delivered = asyncio.run(scenario())
    assert delivered == 3
    assert all(listener.accepted for listener in listeners)
    assert all(listener.received == [EVENT] for listener in listeners)


def test_late_listener_gets_no_replay():
    async def scenario():
        relay = BroadcastRelay()
        early, late = FakeListener(), FakeListener()
        await relay.connect(early)
        await relay.publish(EVENT)
        await relay.connect(late)
        second = dict(EVENT, content="second")
        await relay.publish(second)
        return early, late, second

    early, late, second = asyncio.run(scenario())
    assert early.received == [EVENT, second]
    assert late.received == [second]


def test_disconnected_listener_stops_receiving():
    async def scenario():
        relay = BroadcastRelay()
        stays, leaves = FakeListener(), FakeListener()
        await relay.connect(stays)
        await relay.connect(leaves)
        await relay.disconnect(leaves)
        await relay.disconnect(leaves)
        await relay.publish(EVENT)
        return relay, stays, leaves

    relay, stays, leaves = asyncio.run(scenario())
    assert relay.listener_count == 1
    assert stays.received == [EVENT]
    assert leaves.received == []


def test_failing_listener_is_dropped():
    async def scenario():
        relay = BroadcastRelay()
        healthy, broken = FakeListener(), FakeListener(fail=True)
        await relay.connect(healthy)
        await relay.connect(broken)
        delivered = await relay.publish(EVENT)
        return relay, healthy, delivered

    relay, healthy, delivered = asyncio.run(scenario())
    assert delivered == 1
    assert relay.listener_count == 1
    assert healthy.received == [EVENT]


class StalledListener(FakeListener):
    """Accepts, then never completes a send."""

    async def send_json(self, data):
        await asyncio.Event().wait()


def test_stalled_listener_does_not_block_the_relay():
    async def scenario():
        relay = BroadcastRelay(send_timeout=0.2)
        stalled, healthy, newcomer = StalledListener(), FakeListener(), FakeListener()
        await relay.connect(stalled)
        await relay.connect(healthy)

        publishing = asyncio.create_task(relay.publish(EVENT))
        await asyncio.sleep(0.05)

        # Registry changes go through while the fan-out is stuck on a send
        await asyncio.wait_for(relay.connect(newcomer), timeout=0.1)
        await asyncio.wait_for(relay.disconnect(newcomer), timeout=0.1)
        still_publishing = not publishing.done()

        delivered = await asyncio.wait_for(publishing, timeout=2)
        return relay, healthy, newcomer, delivered, still_publishing

    relay, healthy, newcomer, delivered, still_publishing = asyncio.run(scenario())
    assert still_publishing
    assert delivered == 1
    assert healthy.received == [EVENT]
    assert newcomer.accepted and newcomer.received == []
    assert relay.listener_count == 1


def test_stalled_listener_is_dropped_before_next_publish():
    async def scenario():
        relay = BroadcastRelay(send_timeout=0.5)
        stalled, healthy = StalledListener(), FakeListener()
        await relay.connect(stalled)
        await relay.connect(healthy)
        first = await relay.publish(EVENT)
        second = dict(EVENT, content="second")
        # Finishes well inside the timeout once the stalled listener is gone
        await asyncio.wait_for(relay.publish(second), timeout=0.25)
        return relay, healthy, first, second

    relay, healthy, first, second = asyncio.run(scenario())
    assert first == 1
    assert relay.listener_count == 1
    assert healthy.received == [EVENT, second]


def test_concurrent_publishes_arrive_in_same_order_everywhere():
    async def scenario():
        relay = BroadcastRelay()
        listeners = [FakeListener() for _ in range(4)]
        for listener in listeners:
            await relay.connect(listener)
        await asyncio.gather(
            *(relay.publish(dict(EVENT, content=str(i))) for i in range(20))
        )
        return listeners

    listeners = asyncio.run(scenario())
    orders = [[event["content"] for event in listener.received] for listener in listeners]
    assert len(orders[0]) == 20
    assert all(order == orders[0] for order in orders)


def test_websocket_broadcast_to_all_clients(client: TestClient):
    with client.websocket_connect("/ws") as ws1, client.websocket_connect(
        "/ws"
    ) as ws2, client.websocket_connect("/ws") as ws3:
        ws1.send_json(EVENT)
        for ws in (ws1, ws2, ws3):
            assert ws.receive_json() == EVENT

        # Exactly one copy each: the next frame is the next publish
        follow_up = dict(EVENT, content="again")
        ws2.send_json(follow_up)
        for ws in (ws1, ws2, ws3):
            assert ws.receive_json() == follow_up


def test_websocket_event_is_not_filtered_by_receiver(client: TestClient):
    addressed_elsewhere = {"sender": "u1", "receiver": "u9", "content": "psst", "media": None}
    with client.websocket_connect("/ws") as publisher, client.websocket_connect("/ws") as bystander:
        publisher.send_json(addressed_elsewhere)
        assert bystander.receive_json() == addressed_elsewhere
        assert publisher.receive_json() == addressed_elsewhere


def test_websocket_missing_fields_are_null(client: TestClient):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"sender": "u1", "content": "hi"})
        assert ws.receive_json() == {
            "sender": "u1",
            "receiver": None,
            "content": "hi",
            "media": None,
        }


def test_websocket_malformed_frame_is_not_broadcast(client: TestClient):
    with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as other:
        sender.send_text("not json")
        assert sender.receive_json() == {"error": "Invalid message"}

        sender.send_json(EVENT)
        assert other.receive_json() == EVENT
        assert sender.receive_json() == EVENT


def test_relay_does_not_persist_messages(client: TestClient, users, auth_headers):
    with client.websocket_connect("/ws") as ws:
        ws.send_json(EVENT)
        ws.receive_json()

    assert client.get("/messages/u2", headers=auth_headers("u1")).json() == []


def test_reconnecting_client_receives_new_events(client: TestClient):
    relay = client.app.state.relay
    with client.websocket_connect("/ws") as ws:
        ws.send_json(EVENT)
        ws.receive_json()
        assert relay.listener_count == 1

    with client.websocket_connect("/ws") as ws:
        second = dict(EVENT, content="second")
        ws.send_json(second)
        assert ws.receive_json() == second


def test_websocket_binary_frame_gets_error_and_connection_survives(client: TestClient):
    with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as other:
        sender.send_bytes(b'{"sender": "u1", "content": "hi"}')
        assert sender.receive_json() == {"error": "Invalid message"}

        sender.send_json(EVENT)
        assert other.receive_json() == EVENT
        assert sender.receive_json() == EVENT
