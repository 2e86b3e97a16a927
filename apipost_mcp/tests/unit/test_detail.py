from apipost_mcp.features.detail import render_detail
from apipost_mcp.tests.fixtures.fake_apipost import sample_detail


def test_render_detail_sections():
    text = render_detail(sample_detail())
    assert "Name: List users" in text
    assert "Version: v2" in text
    assert "Headers (1)" in text
    assert "1. page: page number" in text
    assert "type: integer, required: yes" in text
    assert "Body (0)" in text
    assert "Cookies (0)" in text
    assert "Response examples (1)" in text
    assert "status: 200" in text


def test_render_detail_truncates_token_and_raw():
    detail = sample_detail()
    detail["response"]["example"][0]["raw"] = "x" * 300
    text = render_detail(detail)
    assert "token: abcdefghijklmnopqrst..." in text
    assert f"data: {'x' * 200}..." in text
    assert "x" * 201 not in text


def test_render_detail_inherited_auth_and_defaults():
    text = render_detail({"name": "Bare", "method": "GET", "url": "/"})
    assert "(inherited or none)" in text
    assert "Version: v1" in text
    assert "Response examples (0)" in text
