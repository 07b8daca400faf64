import io
import logging

import pytest

from dmlcio.config import Config, TokenizeError, make_proto_string_value


def load(text, multi_value=False):
    cfg = Config(multi_value)
    cfg.load(io.StringIO(text))
    return cfg


def test_basic_entries():
    cfg = load('a = 1\nb = "hello world"\n')
    assert cfg.get_param("a") == "1"
    assert cfg.get_param("b") == "hello world"
    assert cfg.is_genuine_string("b") is True
    assert cfg.is_genuine_string("a") is False


def test_no_spaces_around_equals():
    cfg = load("alpha=beta")
    assert cfg.get_param("alpha") == "beta"


def test_comments_are_ignored():
    cfg = load("# heading\nx = 5 # trailing\ny = 6\n")
    assert list(cfg) == [("x", "5"), ("y", "6")]


def test_escaped_quote_in_string():
    cfg = load('s = "say \\"hi\\""\n')
    assert cfg.get_param("s") == 'say "hi"'


def test_single_value_mode_keeps_latest_only():
    cfg = load("a = 1\nb = 2\na = 3\n")
    assert list(cfg) == [("b", "2"), ("a", "3")]
    assert cfg.get_param("a") == "3"


def test_multi_value_mode_keeps_all_in_order():
    cfg = load("a = 1\nb = 2\na = 3\n", multi_value=True)
    assert list(cfg) == [("a", "1"), ("b", "2"), ("a", "3")]
    assert cfg.get_param("a") == "3"


def test_missing_key_raises():
    cfg = load("a = 1")
    with pytest.raises(KeyError):
        cfg.get_param("missing")
    with pytest.raises(KeyError):
        cfg.is_genuine_string("missing")


def test_clear_empties_config():
    cfg = load("a = 1")
    cfg.clear()
    assert list(cfg) == []
    with pytest.raises(KeyError):
        cfg.get_param("a")


def test_bad_escape_stops_loading_and_logs(caplog):
    with caplog.at_level(logging.ERROR):
        cfg = load('good = 1\nbad = "a\\nb"\nlater = 2\n')
    assert cfg.get_param("good") == "1"
    with pytest.raises(KeyError):
        cfg.get_param("later")
    assert "error parsing escape characters" in caplog.text


def test_unclosed_quote_logs(caplog):
    with caplog.at_level(logging.ERROR):
        cfg = load('k = "open\nz = 1\n')
    with pytest.raises(KeyError):
        cfg.get_param("k")
    assert "quotation mark is not closed" in caplog.text


def test_tokenize_error_message_default():
    assert str(TokenizeError()) == "tokenize error"


def test_make_proto_string_value():
    assert make_proto_string_value('a"b') == '"a\\"b"'
    assert make_proto_string_value("plain") == '"plain"'


def test_to_proto_string():
    cfg = load('n = 3\nname = "x\\"y"\n')
    assert cfg.to_proto_string() == 'n : 3\nname : "x\\"y"\n'


def test_insert_directly_and_load_from_string():
    cfg = Config()
    cfg.insert("k", "v", True)
    cfg.load("m = 7")
    assert list(cfg) == [("k", "v"), ("m", "7")]
    assert cfg.is_genuine_string("k") is True