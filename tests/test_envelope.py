"""Wire envelope decode / encode / classification."""

import json

import pytest

from hakushi_chat.errors import DecodeError
from hakushi_chat.models.envelope import WireEnvelope
from hakushi_chat.models.message import AttachmentRef
from hakushi_chat.transport.envelope import (
    ControlEvent,
    EnvelopeKind,
    HistoryEvent,
    MessageEvent,
    build_add_envelope,
    classify,
    decode_envelope,
    encode_envelope,
)


def now() -> float:
    return 42.0


class TestDecode:
    def test_unknown_fields_are_ignored(self):
        env = decode_envelope('{"type": "add", "id": "m1", "user": "Bob", "color": "red", "extra": {"a": 1}}')
        assert env.type == "add"
        assert env.id == "m1"
        assert env.content is None

    def test_missing_and_null_fields_are_absent(self):
        env = decode_envelope('{"id": null}')
        assert env.id is None
        assert env.kind == EnvelopeKind.UNKNOWN

    def test_empty_string_is_not_absent(self):
        env = decode_envelope('{"type": "add", "content": ""}')
        assert env.content == ""

    def test_bytes_and_nested_history(self):
        raw = json.dumps({
            "type": "all",
            "messages": [{"id": "a", "user": "x", "svgs": [{"id": "s", "filename": "f.svg", "url": "/f.svg"}]}],
        }).encode()
        env = decode_envelope(raw)
        assert env.messages[0].svgs[0] == AttachmentRef(id="s", filename="other", url="/other")

    @pytest.mark.parametrize("raw", ["", "{", "not json", "[]", "42", '"text"', '{"id": 5}'])
    def test_malformed_payloads_raise(self, raw):
        with pytest.raises(DecodeError):
            decode_envelope(raw)


class TestEncode:
    def test_absent_fields_are_omitted(self):
        text = encode_envelope(WireEnvelope(type="add", id="m1", content=""))
        assert json.loads(text) == {"type": "add", "id": "m1", "content": ""}

    def test_add_envelope_without_attachments(self):
        env = build_add_envelope("hi", "Alice", message_id="m1", timestamp=1.5)
        assert json.loads(encode_envelope(env)) == {
            "type": "add", "id": "m1", "content": "hi", "user": "Alice", "role": "user", "timestamp": 1.5,
        }

    def test_add_envelope_generates_id_and_timestamp(self):
        env = build_add_envelope("hi", "Alice")
        assert env.id
        assert env.timestamp is not None

    def test_add_envelope_with_attachments(self):
        svg = AttachmentRef(id="s1", filename="a.svg", url="/a.svg")
        payload = json.loads(encode_envelope(build_add_envelope("", "Alice", attachments=[svg])))
        assert payload["svgs"] == [{"id": "s1", "filename": "a.svg", "url": "/a.svg"}]


class TestClassify:
    def test_single_message_defaults(self):
        event = classify(WireEnvelope(type="add", id="m1", user="Bob"), now)
        assert isinstance(event, MessageEvent)
        assert event.kind == "add"
        msg = event.message
        assert (msg.content, msg.role, msg.timestamp, msg.attachments) == ("", "user", 42.0, ())

    @pytest.mark.parametrize("kind", ["add", "update", "init", "something-new", None])
    def test_any_kind_with_id_and_user_is_a_message(self, kind):
        event = classify(WireEnvelope(type=kind, id="m1", user="Bob", content="x"), now)
        assert isinstance(event, MessageEvent)

    def test_keeps_sender_fields(self):
        event = classify(WireEnvelope(type="add", id="m1", user="Bob", role="bot", timestamp=7, content="c"), now)
        assert (event.message.author, event.message.role, event.message.timestamp) == ("Bob", "bot", 7.0)

    @pytest.mark.parametrize("fields", [{"id": "m1"}, {"user": "Bob"}, {}])
    def test_missing_id_or_user_is_control(self, fields):
        event = classify(WireEnvelope(type="add", **fields), now)
        assert isinstance(event, ControlEvent)
        assert event.kind == "add"

    def test_history_skips_incomplete_entries(self):
        env = WireEnvelope(type="all", messages=[
            WireEnvelope(id="a", user="x", content="1"),
            WireEnvelope(id="b"),
            WireEnvelope(id="c", user="y", content="3"),
        ])
        event = classify(env, now)
        assert isinstance(event, HistoryEvent)
        assert [m.id for m in event.messages] == ["a", "c"]
        assert event.skipped == 1

    def test_history_without_messages(self):
        event = classify(WireEnvelope(type="all"), now)
        assert isinstance(event, HistoryEvent)
        assert event.messages == []
