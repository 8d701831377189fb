"""SharexSDK facade: options, handshake, requests and reconnect rebinding."""

import asyncio
import json

import pytest

from sharex_sdk import (
    ConfigurationError,
    ConnectionState,
    HostLocation,
    MemoryStorage,
    NotInitializedError,
    SharexSDK,
    ValidationError,
)
from sharex_sdk.identity import STORAGE_KEY

DEBUG = {"debug": {"host": "localhost", "port": 8080}}
STORED = "1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed"


def make_sdk(transports, **options) -> SharexSDK:
    return SharexSDK({**DEBUG, "reconnect_interval": 20, **options}, transport_factory=transports)


def connected_sdk(transports, on_event=None, **options) -> SharexSDK:
    sdk = make_sdk(transports, **options)
    sdk.init(on_event)
    transports.latest.fire_open()
    return sdk


class TestOptions:
    @pytest.mark.parametrize("options", [
        {"preserve_session_id": "yes"},
        {"debug": "localhost"},
        {"debug": {"host": "localhost"}},
        {"debug": {"host": 1, "port": 8080}},
        {"reconnect_interval": "3000"},
        {"reconnect_interval": -1},
        {"public_data": ["a"]},
        {"correlate_requests": 1},
    ])
    def test_invalid_options(self, options):
        with pytest.raises(ConfigurationError):
            SharexSDK({**DEBUG, **options})

    def test_options_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            SharexSDK("debug")

    def test_location_required_without_debug(self):
        with pytest.raises(ConfigurationError):
            SharexSDK()

    def test_debug_target(self):
        sdk = SharexSDK(DEBUG)
        assert sdk.url == "ws://localhost:8081"
        assert sdk.package_name == "debug"
        assert sdk.public_data == {}
        assert sdk.state is ConnectionState.DISCONNECTED
        assert not sdk.connected

    def test_debug_port_given_as_text(self):
        assert SharexSDK({"debug": {"host": "h", "port": "9000"}}).url == "ws://h:9001"

    def test_location(self):
        location = HostLocation.from_url("http://10.0.0.5:3000/SharexApp/word-game/index.html")
        sdk = SharexSDK(location=location)
        assert sdk.url == "ws://10.0.0.5:3001"
        assert sdk.package_name == "word.game"

    def test_preserved_session_id(self):
        storage = MemoryStorage({STORAGE_KEY: STORED})
        sdk = SharexSDK({**DEBUG, "preserve_session_id": True}, storage=storage)
        assert sdk.session_id == STORED

    def test_session_id_fresh_by_default(self):
        storage = MemoryStorage({STORAGE_KEY: STORED})
        assert SharexSDK(DEBUG, storage=storage).session_id != STORED

    def test_session_id_is_read_only(self):
        sdk = SharexSDK(DEBUG)
        with pytest.raises(AttributeError):
            sdk.session_id = "other"


class TestBeforeInit:
    def test_requests_need_init(self):
        sdk = SharexSDK(DEBUG)
        with pytest.raises(NotInitializedError):
            sdk.get_all_users(lambda _: None)
        with pytest.raises(NotInitializedError):
            sdk.send_msg("someone", "hi")
        with pytest.raises(NotInitializedError):
            sdk.create_db_instance("game")


class TestConnected:
    def test_handshake(self, transports, on_event, events):
        sdk = connected_sdk(transports, on_event, public_data={"nick": "ann"})
        assert transports.latest.frames == [{
            "action": "init_user",
            "package_name": "debug",
            "data": {"uuid": sdk.session_id, "public_data": {"nick": "ann"}},
        }]
        assert events == [("open", None)]
        assert sdk.connected

    def test_get_all_users(self, transports):
        sdk = connected_sdk(transports)
        received = []
        sdk.get_all_users(received.append)
        assert transports.latest.frames[-1] == {"action": "get_all_users"}
        transports.latest.fire_message({"action": "return_all_users", "all_users": [{"uuid": "a"}]})
        assert received == [[{"uuid": "a"}]]

    def test_request_public_data(self, transports):
        sdk = connected_sdk(transports)
        received = []
        sdk.request_public_data("peer", received.append)
        assert transports.latest.frames[-1] == {"action": "get_public_data_of_user", "data": {"uuid": "peer"}}
        transports.latest.fire_message({"action": "return_public_data_of_user", "public_data": {"nick": "bo"}})
        assert received == [{"nick": "bo"}]

    def test_send_msg(self, transports):
        sdk = connected_sdk(transports)
        sdk.send_msg("peer", {"move": 3})
        assert transports.latest.frames[-1] == {"action": "send_msg", "data": {"uuid": "peer", "msg": {"move": 3}}}

    def test_push_notifications_reach_event_handler(self, transports, on_event, events):
        connected_sdk(transports, on_event)
        transports.latest.fire_message({"action": "msg_arrive", "message": "hello"})
        transports.latest.fire_message("")
        transports.latest.fire_message({"action": "brand_new_action"})
        assert events[-1] == ("msg_arrive", "hello")
        assert len(events) == 2

    def test_update_my_public_data(self, transports):
        sdk = connected_sdk(transports)
        sdk.update_my_public_data({"nick": "zed"})
        assert sdk.public_data == {"nick": "zed"}
        assert transports.latest.frames[-1] == {"action": "update_user_data", "data": {"public_data": {"nick": "zed"}}}
        with pytest.raises(ValidationError):
            sdk.update_my_public_data(["zed"])

    def test_json_files(self, transports):
        sdk = connected_sdk(transports)
        created, read = [], []
        sdk.create_json_file("scores.json", [1, 2], created.append)
        sdk.read_json_file("scores.json", read.append)
        assert transports.latest.actions[-2:] == ["create_json_file", "read_json_file"]
        assert transports.latest.frames[-2]["data"] == {"filename": "scores.json", "data": [1, 2]}

        transports.latest.fire_message({"action": "return_read_json_file", "data": [1, 2]})
        assert read == [{"action": "return_read_json_file", "data": [1, 2]}]
        assert created == []

    @pytest.mark.parametrize("call", [
        lambda sdk: sdk.create_json_file(1, {}, print),
        lambda sdk: sdk.create_json_file("f.json", "text", print),
        lambda sdk: sdk.create_json_file("f.json", {}, None),
        lambda sdk: sdk.read_json_file(None, print),
        lambda sdk: sdk.read_json_file("f.json", "cb"),
        lambda sdk: sdk.get_all_users(None),
        lambda sdk: sdk.request_public_data(7, print),
    ])
    def test_validation_before_write(self, transports, call):
        sdk = connected_sdk(transports)
        with pytest.raises(ValidationError):
            call(sdk)
        assert transports.latest.actions == ["init_user"]

    def test_store_results_routed_to_db(self, transports):
        sdk = connected_sdk(transports)
        db = sdk.create_db_instance("game")
        received = []
        db.find("players", "$[*]", received.append)
        transports.latest.fire_message(json.dumps({
            "action": "db_action_get_data_result",
            "data": json.dumps({"status": "ok", "data": json.dumps([{"score": 10}])}),
        }))
        assert received == [{"status": "ok", "data": [{"score": 10}]}]

    def test_correlated_requests_carry_request_id(self, transports):
        sdk = connected_sdk(transports, correlate_requests=True)
        first, second = [], []
        sdk.get_all_users(first.append)
        sdk.get_all_users(second.append)
        id_a, id_b = (frame["request_id"] for frame in transports.latest.frames[1:])
        transports.latest.fire_message({"action": "return_all_users", "all_users": ["a"], "request_id": id_a})
        transports.latest.fire_message({"action": "return_all_users", "all_users": ["b"], "request_id": id_b})
        assert first == [["a"]]
        assert second == [["b"]]


class TestReconnect:
    @pytest.mark.asyncio
    async def test_db_rebound_and_handshake_repeated(self, transports, on_event, events):
        sdk = connected_sdk(transports, on_event)
        db = sdk.create_db_instance("game")
        sdk.update_my_public_data({"nick": "after"})
        transports.latest.fire_close()
        assert sdk.state is ConnectionState.RECONNECT_WAITING

        db.find("players", lambda _: None)
        await asyncio.sleep(0.05)
        second = transports.latest
        assert second is not transports.created[0]
        second.fire_open()

        assert events[-1] == ("reconnect", None)
        assert second.frames[0]["data"]["public_data"] == {"nick": "after"}
        db.find("players", lambda _: None)
        assert second.actions == ["init_user", "db_action_get_all_data"]
        await sdk.disconnect()

    @pytest.mark.asyncio
    async def test_second_init_rebinds_db(self, transports):
        sdk = connected_sdk(transports)
        first = transports.latest
        db = sdk.create_db_instance("game")

        sdk.init()
        second = transports.latest
        assert second is not first
        second.fire_open()
        db.find("players", lambda _: None)
        assert second.actions == ["init_user", "db_action_get_all_data"]
        await sdk.disconnect()

    @pytest.mark.asyncio
    async def test_db_created_while_waiting_is_opened_on_reconnect(self, transports):
        sdk = connected_sdk(transports)
        transports.latest.fire_close()
        seen = []
        db = sdk.create_db_instance("game", lambda action, data: seen.append(action))

        await asyncio.sleep(0.05)
        second = transports.latest
        second.fire_open()
        assert second.actions == ["init_user", "db_action_init_db"]

        second.fire_message({"action": "db_action_init_db_result", "data": {"status": "ok"}})
        assert seen == ["init_db_result"]
        db.find("players", lambda _: None)
        assert second.actions[-1] == "db_action_get_all_data"
        await sdk.disconnect()

    def test_db_created_before_first_open_waits_for_it(self, transports):
        sdk = make_sdk(transports)
        sdk.init()
        sdk.create_db_instance("game")
        assert transports.latest.sent == []
        transports.latest.fire_open()
        assert transports.latest.actions == ["init_user", "db_action_init_db"]

    @pytest.mark.asyncio
    async def test_replaced_db_is_not_rebound(self, transports):
        sdk = connected_sdk(transports)
        old = sdk.create_db_instance("old")
        new = sdk.create_db_instance("new")
        transports.latest.fire_close()
        await asyncio.sleep(0.05)
        second = transports.latest
        second.fire_open()

        old.find("players", lambda _: None)
        new.find("players", lambda _: None)
        assert second.actions == ["init_user", "db_action_get_all_data"]
        await sdk.disconnect()


class TestAwaitable:
    @pytest.mark.asyncio
    async def test_connect_waits_for_open(self, transports):
        sdk = make_sdk(transports)
        task = asyncio.create_task(sdk.connect(timeout=1.0))
        await asyncio.sleep(0)
        transports.latest.fire_open()
        await task
        assert sdk.connected

    @pytest.mark.asyncio
    async def test_request_returns_first_result(self, transports):
        sdk = connected_sdk(transports)
        task = asyncio.create_task(sdk.request(sdk.get_all_users))
        await asyncio.sleep(0)
        transports.latest.fire_message({"action": "return_all_users", "all_users": ["x"]})
        assert await task == ["x"]

    @pytest.mark.asyncio
    async def test_request_with_store_operation(self, transports):
        sdk = connected_sdk(transports)
        db = sdk.create_db_instance("game")
        task = asyncio.create_task(sdk.request(db.insert, "players", {"a": 1}))
        await asyncio.sleep(0)
        transports.latest.fire_message({"action": "db_action_insert_data_result", "data": '{"status": "ok"}'})
        assert await task == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_request_timeout(self, transports):
        sdk = connected_sdk(transports)
        with pytest.raises(TimeoutError):
            await sdk.request(sdk.get_all_users, timeout=0.01)
