"""Tests for the activity feed decoder."""

import logging
from datetime import datetime

import pytest
from conftest import as_stream, feed_document, feed_item, utc_datetime

from tracker_relay.exceptions import DecodeError, FeedDecodeError, TitleParseError
from tracker_relay.sources.feed_decoder import (
    FeedDecoder,
    decode_feed,
    parse_publish_date,
    parse_title,
)

NEWER_DATE = "Wed, 09 Jul 2014 17:38:36 UT"
OLDER_DATE = "Wed, 09 Jul 2014 10:00:00 UT"

NEWER = utc_datetime(2014, 7, 9, 17, 38, 36)
OLDER = utc_datetime(2014, 7, 9, 10, 0, 0)


def _two_item_feed() -> bytes:
    # Newest first, as the tracker lists them
    return feed_document(
        feed_item("ABC-12: Fix bug", NEWER_DATE),
        feed_item("ABC-7: Add feature", OLDER_DATE),
    )


# ---------------------------------------------------------------------------
# Title and date parsing
# ---------------------------------------------------------------------------


def test_parse_title() -> None:
    assert parse_title("ABC-12: Fix bug") == ("ABC", 12)
    assert parse_title(" ABC - 12 : spaced out") == ("ABC", 12)
    assert parse_title("ABC-7: Time: 10:00") == ("ABC", 7)


@pytest.mark.parametrize(
    "title",
    ["No marker here", "ABC-12 no colon", "-12: empty prefix", "ABC-twelve: words"],
)
def test_parse_title_rejects_malformed(title: str) -> None:
    with pytest.raises(TitleParseError) as exc_info:
        parse_title(title)
    assert exc_info.value.title == title


@pytest.mark.parametrize(
    "text",
    [
        "Wed, 09 Jul 2014 17:38:36 UT",
        "Wed, 09 Jul 2014 17:38:36 GMT",
        "Wed, 09 Jul 2014 17:38:36 +0000",
        "Wed, 09 Jul 2014 17:38:36",
    ],
)
def test_parse_publish_date_ignores_zone_token(text: str) -> None:
    assert parse_publish_date(text) == NEWER


def test_parse_publish_date_rejects_garbage() -> None:
    with pytest.raises(FeedDecodeError):
        parse_publish_date("2014-07-09T17:38:36Z")
    with pytest.raises(FeedDecodeError):
        parse_publish_date("Wed, 39 Jul 2014 17:38:36 UT")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def test_decode_returns_oldest_first() -> None:
    events = decode_feed(as_stream(_two_item_feed()))

    assert [event.key for event in events] == [
        "ABC-7::2014-07-09 10:00:00",
        "ABC-12::2014-07-09 17:38:36",
    ]
    assert [event.item.namespace_prefix for event in events] == ["ABC", "ABC"]
    assert [event.item.numeric_id for event in events] == [7, 12]
    assert [event.published_at for event in events] == [OLDER, NEWER]


def test_decode_reads_item_fields() -> None:
    data = feed_document(
        feed_item(
            "ABC-12: Fix bug",
            NEWER_DATE,
            link="https://tracker.example.com/issue/ABC-12",
            description="Crash\non\nsave",
        )
    )
    (event,) = decode_feed(as_stream(data))

    assert event.item.title == "ABC-12: Fix bug"
    assert event.item.link == "https://tracker.example.com/issue/ABC-12"
    assert event.item.description == "Crashonsave"


def test_decode_cutoff_is_strict() -> None:
    events = decode_feed(as_stream(_two_item_feed()), cutoff=OLDER)
    assert [event.item.numeric_id for event in events] == [12]

    assert decode_feed(as_stream(_two_item_feed()), cutoff=NEWER) == []


def test_decode_without_cutoff_returns_every_event() -> None:
    assert len(decode_feed(as_stream(_two_item_feed()), cutoff=None)) == 2


def test_decode_skips_item_with_bad_title(caplog: pytest.LogCaptureFixture) -> None:
    data = feed_document(
        feed_item("ABC-12: Fix bug", NEWER_DATE),
        feed_item("Release notes published", "Wed, 09 Jul 2014 12:00:00 UT"),
        feed_item("ABC-7: Add feature", OLDER_DATE),
    )

    with caplog.at_level(logging.WARNING, logger="tracker_relay"):
        events = decode_feed(as_stream(data))

    assert [event.item.numeric_id for event in events] == [7, 12]
    assert "Release notes published" in caplog.text


def test_decode_tolerates_extra_trailing_children() -> None:
    item = feed_item("ABC-12: Fix bug", NEWER_DATE).replace(
        "</item>", "<guid>ABC-12</guid><category>bug</category></item>"
    )
    (event,) = decode_feed(as_stream(feed_document(item)))
    assert event.item.key == "ABC-12"


def test_decode_small_chunks() -> None:
    events = FeedDecoder(chunk_size=7).decode(as_stream(_two_item_feed()))
    assert [event.item.numeric_id for event in events] == [7, 12]


def test_decode_leaves_stream_open() -> None:
    stream = as_stream(_two_item_feed())
    decode_feed(stream)
    assert not stream.closed


def test_decode_empty_feed() -> None:
    assert decode_feed(as_stream(feed_document())) == []


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def test_decode_rejects_out_of_order_children() -> None:
    data = feed_document(
        "<item><link>l</link><title>ABC-12: Fix bug</title>"
        f"<description>d</description><pubDate>{NEWER_DATE}</pubDate></item>"
    )
    with pytest.raises(FeedDecodeError) as exc_info:
        decode_feed(as_stream(data))
    assert "<title>" in str(exc_info.value)


def test_decode_rejects_item_missing_publish_date() -> None:
    data = feed_document(
        "<item><title>ABC-12: Fix bug</title><link>l</link><description>d</description></item>"
    )
    with pytest.raises(FeedDecodeError):
        decode_feed(as_stream(data))


def test_decode_rejects_unparsable_publish_date() -> None:
    data = feed_document(feed_item("ABC-12: Fix bug", "yesterday"))
    with pytest.raises(FeedDecodeError):
        decode_feed(as_stream(data))


def test_decode_rejects_truncated_document() -> None:
    data = _two_item_feed()
    with pytest.raises(FeedDecodeError):
        decode_feed(as_stream(data[: len(data) // 2]))


def test_feed_errors_are_decode_errors() -> None:
    with pytest.raises(DecodeError):
        decode_feed(as_stream(b"<rss><channel><item>"))


def test_decode_naive_cutoff_taken_as_utc() -> None:
    events = decode_feed(as_stream(_two_item_feed()), cutoff=datetime(2014, 7, 9, 17, 0, 0))
    assert [event.item.numeric_id for event in events] == [12]
