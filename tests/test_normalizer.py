"""
Tests for the request → validated events path.

Covers: metadata stamping, client IP extraction, identity cookies,
validation drops, ordering, and bad requests.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from collector.exceptions import BadRequestError, CollectorError, UnsupportedEncodingError
from collector.handlers import JSONHandler
from collector.identity import IdentityAssigner, IdentityCookieConfig, epoch_millis
from collector.normalizer import (
    DATE_TIME,
    LOOPBACK_IP,
    REFERER,
    USER_AGENT,
    X_FORWARDED_FOR,
    EventNormalizer,
    client_ip,
)
from collector.validator import HeaderValidator, ValidationRule

NOW = datetime(2026, 10, 18, 9, 5, 1, tzinfo=timezone.utc)
METADATA_KEYS = {DATE_TIME, USER_AGENT, REFERER, X_FORWARDED_FOR, "uuid_tt_dd", "dc_session_id"}


def batch_body(*items):
    return json.dumps(list(items)).encode("utf-8")


def make_normalizer(validate=(), write_cookie=True):
    return EventNormalizer(
        identity=IdentityAssigner(IdentityCookieConfig(write_cookie=write_cookie)),
        validator=HeaderValidator(ValidationRule(headers=tuple(validate))),
    )


class TestClientIp:

    def test_first_forwarded_hop(self):
        assert client_ip("10.0.0.1, 10.0.0.2") == "10.0.0.1"

    def test_default_loopback(self):
        assert client_ip(None) == LOOPBACK_IP
        assert client_ip("") == LOOPBACK_IP
        assert client_ip(" , 10.0.0.2") == LOOPBACK_IP


class TestRequestMetadata:

    def test_defaults_without_request_headers(self):
        metadata, directives = make_normalizer().request_metadata(None, None, NOW)
        assert set(metadata) == METADATA_KEYS
        assert metadata[USER_AGENT] == "-"
        assert metadata[REFERER] == "-"
        assert metadata[X_FORWARDED_FOR] == LOOPBACK_IP
        assert metadata[DATE_TIME] == "20261018 09:05:01"
        assert metadata["dc_session_id"] == str(epoch_millis(NOW))
        assert metadata["uuid_tt_dd"].endswith("_20261018 09:05:01")
        assert [d.name for d in directives] == ["uuid_tt_dd", "dc_session_id"]

    def test_request_headers_case_insensitive(self):
        headers = {"user-agent": "Mozilla/5.0", "referer": "https://a.test/", "x-forwarded-for": "1.2.3.4"}
        metadata, _ = make_normalizer().request_metadata(headers, None, NOW)
        assert metadata[USER_AGENT] == "Mozilla/5.0"
        assert metadata[REFERER] == "https://a.test/"
        assert metadata[X_FORWARDED_FOR] == "1.2.3.4"

    def test_known_client_gets_no_cookies(self):
        cookies = {
            "uuid_tt_dd": "5_20260101 00:00:00",
            "dc_session_id": str(epoch_millis(NOW - timedelta(minutes=5))),
        }
        metadata, directives = make_normalizer().request_metadata(None, cookies, NOW)
        assert metadata["uuid_tt_dd"] == "5_20260101 00:00:00"
        assert metadata["dc_session_id"] == cookies["dc_session_id"]
        assert directives == []

    def test_custom_metadata_names(self):
        normalizer = EventNormalizer.from_context({"cookie.id": "cid", "session.id": "sid"})
        metadata, _ = normalizer.request_metadata(None, None, NOW)
        assert "cid" in metadata and "sid" in metadata


class TestFromContext:

    def test_handler_chosen_by_name(self):
        normalizer = EventNormalizer.from_context({"handler": "JSON"})
        assert isinstance(normalizer.handler, JSONHandler)

    def test_default_handler(self):
        assert EventNormalizer.from_context({}).handler.name == "json"

    def test_unknown_handler_rejected(self):
        with pytest.raises(CollectorError, match="xml"):
            EventNormalizer.from_context({"handler": "xml"})


class TestNormalize:

    def test_events_carry_metadata(self):
        body = batch_body(
            {"headers": {"page": "home"}, "body": "one"},
            {"headers": {"page": "cart"}, "body": "two"},
        )
        batch = make_normalizer().normalize(body, now=NOW)
        assert batch.received == 2
        assert batch.accepted == 2
        assert [e.body for e in batch.events] == [b"one", b"two"]
        for event in batch.events:
            assert METADATA_KEYS <= set(event.headers)
        # Same request, same identity
        assert batch.events[0].headers["uuid_tt_dd"] == batch.events[1].headers["uuid_tt_dd"]

    def test_metadata_overwrites_client_headers(self):
        body = batch_body({"headers": {"User-Agent": "spoofed"}, "body": ""})
        batch = make_normalizer().normalize(body, request_headers={"User-Agent": "real"}, now=NOW)
        assert batch.events[0].headers[USER_AGENT] == "real"

    def test_invalid_events_dropped_in_order(self):
        body = batch_body(
            {"headers": {"uid": "a1"}, "body": "1"},
            {"headers": {"uid": "!!"}, "body": "2"},
            {"headers": {}, "body": "3"},
            {"headers": {"uid": "b_2"}, "body": "4"},
        )
        batch = make_normalizer(validate=["uid"]).normalize(body, now=NOW)
        assert [e.body for e in batch.events] == [b"1", b"4"]
        assert batch.rejected == 2
        assert batch.received == 4

    def test_validation_sees_metadata(self):
        body = batch_body({"headers": {}, "body": "x"})
        batch = make_normalizer(validate=["dc_session_id"]).normalize(body, now=NOW)
        assert batch.accepted == 1

    def test_headerless_element_yields_nothing(self):
        body = batch_body({"body": "orphan"}, {"headers": {"k": "v"}, "body": "kept"})
        batch = make_normalizer().normalize(body, now=NOW)
        assert [e.body for e in batch.events] == [b"kept"]

    def test_cookie_directives_returned(self):
        batch = make_normalizer().normalize(b"[]", now=NOW)
        assert {d.name for d in batch.cookies} == {"uuid_tt_dd", "dc_session_id"}
        assert batch.events == []

    def test_cookie_writing_disabled(self):
        batch = make_normalizer(write_cookie=False).normalize(b"[]", now=NOW)
        assert batch.cookies == []

    def test_charset_applied_to_bodies(self):
        body = json.dumps([{"headers": {}, "body": "ü"}]).encode("utf-16")
        batch = make_normalizer().normalize(body, charset="UTF-16", now=NOW)
        assert batch.events[0].charset == "utf-16"
        assert batch.events[0].body == b"\xfe\xff\x00\xfc"

    def test_big_endian_utf16_without_bom(self):
        body = json.dumps([{"headers": {"page": "home"}, "body": "x"}]).encode("utf-16-be")
        batch = make_normalizer().normalize(body, charset="UTF-16", now=NOW)
        assert batch.events[0].headers["page"] == "home"

    def test_malformed_json_emits_nothing(self):
        normalizer = make_normalizer()
        with patch.object(normalizer.identity, "resolve_durable_id") as resolve:
            with pytest.raises(BadRequestError):
                normalizer.normalize(b'[{"headers": {}, "body": "x"}', now=NOW)
        resolve.assert_not_called()

    def test_unsupported_charset(self):
        with pytest.raises(UnsupportedEncodingError):
            make_normalizer().normalize(b"[]", charset="ISO-8859-1", now=NOW)

    def test_uses_wall_clock_by_default(self):
        batch = make_normalizer().normalize(batch_body({"headers": {}, "body": ""}))
        sid = int(batch.events[0].headers["dc_session_id"])
        assert abs(sid - epoch_millis(datetime.now(timezone.utc))) < 60_000
