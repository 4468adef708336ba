"""Tests for invitation links."""

from urllib.parse import parse_qs, urlparse

from secretfriend.services.delivery import invitation_links, invitation_message, result_url, whatsapp_url


def test_whatsapp_url_prefixes_country_code():
    url = whatsapp_url("(11) 99999-0000", "hi")
    assert url == "https://wa.me/5511999990000?text=hi"


def test_whatsapp_url_keeps_international_numbers():
    url = whatsapp_url("+1 415 555 0100", "hi", country_code="55")
    assert url.startswith("https://wa.me/14155550100?")


def test_whatsapp_url_encodes_message():
    message = invitation_message("Ana", "https://example.com/result/abc")
    url = whatsapp_url("111", message, country_code="351")

    parsed = urlparse(url)
    assert parsed.path == "/351111"
    assert parse_qs(parsed.query)["text"] == [message]
    assert " " not in url and "\n" not in url


def test_invitation_message_mentions_link():
    message = invitation_message("Bruno", "https://x.test/result/t1")
    assert "Bruno" in message
    assert "https://x.test/result/t1" in message
    assert "Do not share" in message


def test_result_url_uses_request_host(app):
    with app.test_request_context("/", base_url="http://party.local"):
        assert result_url("abc") == "http://party.local/result/abc"


def test_result_url_uses_public_base_url(app):
    app.config["PUBLIC_BASE_URL"] = "https://friends.example.org/"
    with app.test_request_context("/"):
        assert result_url("abc") == "https://friends.example.org/result/abc"


def test_invitation_links(app):
    app.config["WHATSAPP_COUNTRY_CODE"] = "44"
    with app.test_request_context("/", base_url="http://party.local"):
        links = invitation_links("Ana", "7700", "tok")
    assert links["result_url"] == "http://party.local/result/tok"
    assert links["whatsapp_url"].startswith("https://wa.me/447700?text=")
