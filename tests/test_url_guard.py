# File: tests/test_url_guard.py
import pytest

from deploy_scout.crawler.url_guard import validate_url


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/docs",
        "http://vendor.example/install?lang=en",
        "https://docs.vendor.com:8443/guide",
        "https://172.32.0.1/",
    ],
)
def test_public_urls_allowed(url):
    assert validate_url(url) is True


@pytest.mark.parametrize(
    "url",
    [
        "file:///etc/passwd",
        "ftp://example.com/setup.exe",
        "javascript:alert(1)",
        "http://localhost:8080/",
        "http://LOCALHOST/",
        "http://127.0.0.1/admin",
        "http://0.0.0.0/",
        "http://[::1]/",
        "http://169.254.169.254/latest/meta-data/",
        "http://10.0.0.5/",
        "http://172.16.0.1/",
        "http://172.31.255.255/",
        "http://192.168.1.1/",
        "https://",
        "not a url",
        "",
    ],
)
def test_unsafe_or_invalid_urls_rejected(url):
    assert validate_url(url) is False


def test_non_string_input_never_raises():
    assert validate_url(None) is False  # type: ignore[arg-type]
    assert validate_url(42) is False  # type: ignore[arg-type]


def test_unparsable_port_rejected():
    assert validate_url("http://[invalid") is False
