"""Tests for live-stream detection and cache-busting."""

from services.live_edge import is_live_stream, is_loop_source, rewrite_for_live_edge
from tests.conftest import LIVE_RADIO_URL


def test_detects_live_stream_by_filename():
    assert is_live_stream(LIVE_RADIO_URL)
    assert is_live_stream("radio.mp3")
    assert is_live_stream(f"{LIVE_RADIO_URL}?t=123")
    assert not is_live_stream("https://storage.example/Candy%20Cane%20Lane.mp3")
    assert not is_live_stream("https://example.com/radio.mp3/other")
    assert not is_live_stream(None)


def test_rewrite_appends_timestamp():
    assert rewrite_for_live_edge(LIVE_RADIO_URL, now=1700000000.123) == f"{LIVE_RADIO_URL}?t=1700000000123"
    assert rewrite_for_live_edge("radio.mp3", now=2.0) == "radio.mp3?t=2000"


def test_rewrite_replaces_existing_timestamp_and_keeps_other_params():
    url = f"{LIVE_RADIO_URL}?quality=hi&t=1"
    assert rewrite_for_live_edge(url, now=5.0) == f"{LIVE_RADIO_URL}?quality=hi&t=5000"


def test_rewrite_leaves_other_urls_untouched():
    url = "https://storage.example/track.mp3?t=1"
    assert rewrite_for_live_edge(url, now=5.0) == url
    assert rewrite_for_live_edge(None) is None


def test_each_resolution_gets_a_fresh_stamp():
    first = rewrite_for_live_edge(LIVE_RADIO_URL, now=1.0)
    second = rewrite_for_live_edge(LIVE_RADIO_URL, now=2.0)
    assert first != second


def test_loop_sources():
    assert is_loop_source(LIVE_RADIO_URL)
    assert is_loop_source("https://storage.example/Cocoon.MP4")
    assert not is_loop_source("/api/proxy-audio?url=https://x/ondemand/download/1")
    assert not is_loop_source(None)
