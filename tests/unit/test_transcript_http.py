"""Unit tests for the YouTube HTTP channel."""

import json

import httpx
import pytest

from ytscrape.transcripts.errors import IpBlocked, YouTubeRequestFailed
from ytscrape.transcripts.http import CookieJar, HttpClient, raise_http_errors
from ytscrape.transcripts.proxies import GenericProxyConfig, WebshareProxyConfig


def _recording_transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    return httpx.MockTransport(handler)


class TestCookieJar:
    def test_leading_dot_domain_matches_subdomains(self):
        jar = CookieJar()
        jar.set("CONSENT", "YES+abc", ".youtube.com")
        assert jar.header_for("https://www.youtube.com/watch?v=x") == "CONSENT=YES+abc"
        assert jar.header_for("https://youtube.com/") == "CONSENT=YES+abc"
        assert jar.header_for("https://example.com/") == ""

    def test_exact_domain(self):
        jar = CookieJar()
        jar.set("a", "1", "www.youtube.com")
        assert jar.header_for("https://www.youtube.com/") == "a=1"

    def test_multiple_cookies_joined(self):
        jar = CookieJar()
        jar.set("a", "1", ".youtube.com")
        jar.set("b", "2", ".youtube.com")
        assert jar.header_for("https://m.youtube.com/") == "a=1; b=2"

    def test_set_replaces_same_name_and_domain(self):
        jar = CookieJar()
        jar.set("a", "1", ".youtube.com")
        jar.set("a", "2", ".youtube.com")
        assert len(jar) == 1
        assert jar.header_for("https://www.youtube.com/") == "a=2"

    def test_lookalike_host_does_not_match(self):
        jar = CookieJar()
        jar.set("a", "1", ".youtube.com")
        jar.set("b", "2", "youtube.com")
        assert jar.header_for("https://evilyoutube.com/") == ""
        assert jar.header_for("https://notyoutube.com/watch") == ""

    def test_url_without_host(self):
        jar = CookieJar()
        jar.set("a", "1", ".youtube.com")
        assert jar.header_for("/relative/path") == ""


class TestRaiseHttpErrors:
    def test_429_is_ip_blocked(self):
        with pytest.raises(IpBlocked):
            raise_http_errors(httpx.Response(429), "vid")

    def test_server_error(self):
        with pytest.raises(YouTubeRequestFailed) as exc_info:
            raise_http_errors(
                httpx.Response(
                    503, request=httpx.Request("GET", "https://www.youtube.com/watch?v=x")
                ),
                "vid",
            )
        assert "503 Service Unavailable" in exc_info.value.message

    def test_success_passes_through(self):
        response = httpx.Response(200)
        assert raise_http_errors(response, "vid") is response


class TestHttpClient:
    @pytest.mark.asyncio
    async def test_persistent_and_per_request_headers(self):
        seen: list[httpx.Request] = []
        client = HttpClient(headers={"Accept-Language": "en-US"}, transport=_recording_transport(seen))
        client.set_header("X-Extra", "1")
        await client.get("https://www.youtube.com/watch?v=x", headers={"X-Call": "2"})

        request = seen[0]
        assert request.headers["Accept-Language"] == "en-US"
        assert request.headers["X-Extra"] == "1"
        assert request.headers["X-Call"] == "2"
        assert "Cookie" not in request.headers

    @pytest.mark.asyncio
    async def test_cookie_sent_only_to_matching_host(self):
        seen: list[httpx.Request] = []
        client = HttpClient(transport=_recording_transport(seen))
        client.set_cookie("CONSENT", "YES+v", ".youtube.com")
        await client.get("https://www.youtube.com/watch")
        await client.get("https://example.com/")

        assert seen[0].headers["Cookie"] == "CONSENT=YES+v"
        assert "Cookie" not in seen[1].headers

    def test_connection_close_for_rotating_residential(self):
        client = HttpClient(proxy_config=WebshareProxyConfig("user", "pass"))
        assert client.build_headers("https://www.youtube.com/")["Connection"] == "close"

    def test_keep_alive_for_generic_proxy(self):
        client = HttpClient(proxy_config=GenericProxyConfig(http_url="http://p:1"))
        assert "Connection" not in client.build_headers("https://www.youtube.com/")

    @pytest.mark.asyncio
    async def test_post_json_body(self):
        seen: list[httpx.Request] = []
        client = HttpClient(transport=_recording_transport(seen))
        await client.post("https://www.youtube.com/youtubei/v1/player", json={"videoId": "x"})
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"videoId": "x"}

    def test_proxy_options_round_trip(self):
        client = HttpClient()
        assert client.proxy_options is None
        client.set_proxy_options({"http": "http://1.2.3.4:80", "https": "http://1.2.3.4:80"})
        assert client.proxy_options["https"] == "http://1.2.3.4:80"
