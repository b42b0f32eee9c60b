"""
Tests for models: value codec, option sanitization and outcomes.
"""

import pickle
from pathlib import Path

import pytest

from rox.models.codec import decode, encode, encode_raw, encode_term, is_raw
from rox.models.exceptions import ClosedError, DecodeError, EngineError, InvalidOptionError
from rox.models.options import (
    CompressionType,
    ReadDirectives,
    as_dict,
    sanitize_opts,
    split_read_opts,
)
from rox.models.outcome import NOT_FOUND, NotFoundType


class TestCodec:
    """Tests for encode/decode."""

    @pytest.mark.parametrize(
        "value",
        [
            42,
            -7,
            3.5,
            "text",
            None,
            True,
            [1, "two", 3.0],
            (1, (2, (3,))),
            {"nested": {"list": [1, 2], "set": {1, 2}}},
            [],
            {},
            (),
        ],
    )
    def test_round_trip(self, value):
        """Test decode(encode(v)) == v for non-bytes values."""
        assert decode(encode(value)) == value

    def test_bytes_pass_through_unchanged(self):
        """Test bytes are stored as the same object."""
        data = b"\x00raw\xff"
        assert encode(data) is data

    def test_bytes_like_copied_to_bytes(self):
        """Test bytearray and memoryview become equal bytes."""
        assert encode(bytearray(b"abc")) == b"abc"
        assert encode(memoryview(b"abc")) == b"abc"
        assert type(encode(bytearray(b"abc"))) is bytes

    def test_is_raw(self):
        """Test runtime classification of values."""
        assert is_raw(b"x")
        assert is_raw(bytearray(b"x"))
        assert not is_raw("x")
        assert not is_raw(1)

    def test_encode_raw_rejects_non_bytes(self):
        """Test explicit raw encoding refuses other types."""
        with pytest.raises(TypeError):
            encode_raw("text")

    def test_encode_term_pickles_bytes(self):
        """Test explicit term encoding serializes bytes too."""
        encoded = encode_term(b"abc")
        assert encoded != b"abc"
        assert decode(encoded) == b"abc"

    def test_decode_raw_bytes_fails(self):
        """Test decoding bytes that were never pickled."""
        with pytest.raises(DecodeError) as exc_info:
            decode(b"hello world")
        assert exc_info.value.data == b"hello world"

    def test_decode_empty_fails(self):
        """Test decoding an empty value."""
        with pytest.raises(DecodeError):
            decode(b"")

    def test_decode_trailing_bytes_fails(self):
        """Test a valid pickle followed by extra bytes is rejected."""
        with pytest.raises(DecodeError, match="trailing"):
            decode(pickle.dumps(1) + b"junk")


class TestSanitizeOpts:
    """Tests for sanitize_opts."""

    def test_path_options_become_bytes(self):
        """Test log and WAL directories are converted to bytes."""
        opts = sanitize_opts({"db_log_dir": "/var/log/db", "wal_dir": Path("/data/wal")})
        assert opts == {"db_log_dir": b"/var/log/db", "wal_dir": b"/data/wal"}

    def test_other_options_unchanged(self):
        """Test non-path options pass through untouched."""
        original = {
            "create_if_missing": True,
            "max_open_files": 512,
            "compression": CompressionType.LZ4,
            "future_option": object(),
        }
        assert sanitize_opts(original) == original

    def test_input_not_mutated(self):
        """Test the caller's mapping is left alone."""
        original = {"wal_dir": "/wal", "sync": True}
        sanitize_opts(original)
        assert original == {"wal_dir": "/wal", "sync": True}

    def test_pairs_with_duplicates(self):
        """Test duplicate names in pair input collapse to one entry."""
        opts = sanitize_opts([("wal_dir", "/old"), ("create_if_missing", True), ("wal_dir", "/new")])
        assert opts == {"wal_dir": b"/new", "create_if_missing": True}
        assert list(opts).count("wal_dir") == 1

    def test_none_is_empty(self):
        """Test missing options sanitize to an empty dict."""
        assert sanitize_opts(None) == {}

    def test_non_string_name_rejected(self):
        """Test option names must be strings."""
        with pytest.raises(TypeError):
            as_dict({1: True})


class TestSplitReadOpts:
    """Tests for split_read_opts."""

    def test_decode_flag_removed(self):
        """Test decode never reaches the engine options."""
        directives = split_read_opts({"decode": True, "fill_cache": False})
        assert directives == ReadDirectives(decode=True, options={"fill_cache": False})

    def test_absent_flag_defaults_false(self):
        """Test reads without the flag do not decode."""
        directives = split_read_opts([("verify_checksums", True)])
        assert directives.decode is False
        assert directives.options == {"verify_checksums": True}

    def test_none(self):
        """Test missing read options."""
        assert split_read_opts(None) == ReadDirectives()


class TestOutcomeAndErrors:
    """Tests for NOT_FOUND and error messages."""

    def test_not_found_singleton(self):
        """Test NOT_FOUND is a falsy singleton that survives pickling."""
        assert NotFoundType() is NOT_FOUND
        assert not NOT_FOUND
        assert repr(NOT_FOUND) == "NOT_FOUND"
        assert pickle.loads(pickle.dumps(NOT_FOUND)) is NOT_FOUND

    def test_error_hierarchy(self):
        """Test option errors are engine errors."""
        err = InvalidOptionError("bogus", 1)
        assert isinstance(err, EngineError)
        assert "bogus=1" in str(err)

    def test_closed_error_message(self):
        """Test closed errors name the operation and path."""
        err = ClosedError("/tmp/db", "put")
        assert str(err) == "Cannot put: database at /tmp/db is closed"
