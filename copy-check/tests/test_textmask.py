"""Tests for URL masking."""

from copycheck.textmask import URL_RE, mask_urls, restore_urls


def test_no_urls_round_trip():
    masked = mask_urls("plain text, nothing to hide")
    assert masked.urls == []
    assert restore_urls(*masked) == "plain text, nothing to hide"


def test_single_url():
    masked = mask_urls("Buy now!! visit https://x.co")
    assert masked.text == "Buy now!! visit __URL0__"
    assert masked.urls == ["https://x.co"]
    assert restore_urls(masked.text, masked.urls) == "Buy now!! visit https://x.co"


def test_multiple_urls_keep_order():
    text = "see www.example.org/a and HTTP://Example.com/b?c=1 then https://x.co"
    masked = mask_urls(text)
    assert masked.urls == ["www.example.org/a", "HTTP://Example.com/b?c=1", "https://x.co"]
    assert "__URL0__" in masked.text and "__URL2__" in masked.text
    assert restore_urls(*masked) == text


def test_many_urls_do_not_collide():
    text = " ".join(f"https://x.co/{i}" for i in range(12))
    assert restore_urls(*mask_urls(text)) == text


def test_www_urls_are_matched():
    assert URL_RE.findall("go to www.a.org now") == ["www.a.org"]
