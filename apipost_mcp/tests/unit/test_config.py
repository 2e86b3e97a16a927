from apipost_mcp.utils import config


def test_parse_bool():
    assert config._parse_bool("YES")
    assert config._parse_bool(" on ")
    assert not config._parse_bool("nope")
    assert config._parse_bool(None, default=True)


def test_parse_numbers_fall_back_on_garbage():
    assert config._parse_int("12", default=1) == 12
    assert config._parse_int("x", default=1) == 1
    assert config._parse_int("  ", default=7) == 7
    assert config._parse_float("2.5", default=1.0) == 2.5
    assert config._parse_float("slow", default=30.0) == 30.0


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("APIPOST_TEST_FLAG", "true")
    monkeypatch.setenv("APIPOST_TEST_INT", "9")
    monkeypatch.setenv("APIPOST_TEST_STR", "  value  ")
    monkeypatch.setenv("APIPOST_TEST_BLANK", "   ")
    assert config._env_bool("APIPOST_TEST_FLAG")
    assert config._env_int("APIPOST_TEST_INT", default=0) == 9
    assert config._env_str("APIPOST_TEST_STR") == "value"
    assert config._env_str("APIPOST_TEST_BLANK", default="fallback") == "fallback"


def test_listing_limits():
    assert config.LIST_DEFAULT_LIMIT == 50
    assert config.LIST_MAX_LIMIT == 200
