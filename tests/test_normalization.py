import pytest

from stop_it.normalization import extract_domain, normalize_window_title


def test_url_and_bare_hostname_agree():
    assert extract_domain("https://www.github.com/x") == "github.com"
    assert extract_domain("github.com") == "github.com"
    assert extract_domain("WWW.GitHub.COM") == "github.com"


@pytest.mark.parametrize(
    "raw",
    [
        "chrome://settings",
        "about:blank",
        "chrome-extension://abcdef/popup.html",
        "moz-extension://1234/options.html",
        "file:///home/me/notes.txt",
        "not a url at all",
        "",
        "   ",
        None,
        "https://",
        "http://localhost:3000/",
        "README.md - Visual Studio Code",
        "main.py - nvim",
    ],
)
def test_non_domains_map_to_none(raw):
    assert extract_domain(raw) is None


def test_full_url_keeps_subdomain():
    assert extract_domain("https://docs.python.org/3/library/re.html") == "docs.python.org"
    assert extract_domain("http://news.ycombinator.example:8080/item") == "news.ycombinator.example"


def test_domain_inside_window_title():
    assert extract_domain("Q - stackoverflow.com") == "stackoverflow.com"
    assert extract_domain("docs.rs - Brave") is None
    assert extract_domain("Pull requests · en.wikipedia.org — Mozilla Firefox") == "en.wikipedia.org"
    assert extract_domain("Reading www.bbc.co.uk/news today") == "bbc.co.uk"


def test_url_embedded_in_title():
    assert extract_domain("Link: https://www.example.io/path - Google Chrome") == "example.io"


def test_service_name_fallback():
    assert extract_domain("Never Gonna Give You Up - YouTube - Google Chrome") == "youtube.com"
    assert extract_domain("python - How do I sort? - Stack Overflow") == "stackoverflow.com"


def test_email_address_is_not_a_domain():
    assert extract_domain("Inbox - someone@mail.ru") is None


def test_normalize_window_title_strips_browser_suffix():
    assert normalize_window_title("GitHub - Mozilla Firefox") == "GitHub"
    assert normalize_window_title("  spaced   out  - Google Chrome") == "spaced out"
    assert normalize_window_title("") is None


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Data: Q3 report - example.com", "example.com"),
        ("About: github.com", "github.com"),
        ("JavaScript: The Good Parts - amazon.com - Google Chrome", "amazon.com"),
        ("File: notes - docs.python.org", "docs.python.org"),
    ],
)
def test_titles_starting_with_scheme_like_words_keep_their_domain(title, expected):
    assert extract_domain(title) == expected
