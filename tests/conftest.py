"""Shared test fixtures and hypothesis strategies for the transcript service test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import strategies as st

from fakes import FakeYouTube
from ytscrape.config.settings import ServiceSettings
from ytscrape.proxy.types import Proxy


# ---------------------------------------------------------------------------
# Keep tests away from the user's real cache directory and env
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Point the default cache folder at a temp dir and clear service env vars."""
    monkeypatch.setenv("YTSCRAPE_CACHE_DIR", str(tmp_path / "default-cache"))
    for var in (
        "YTSCRAPE_PROXY_WARM_SECRET",
        "YTSCRAPE_WEBSHARE_USERNAME",
        "YTSCRAPE_WEBSHARE_PASSWORD",
        "YTSCRAPE_PROXY_LIST_PATH",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path: Path) -> ServiceSettings:
    """Test settings with safe defaults."""
    return ServiceSettings(
        proxy_cache_dir=str(tmp_path / "cache"),
        proxy_list_export_path=str(tmp_path / "export" / "proxy-list.json"),
        proxy_max_proxies=5,
    )


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def fake_youtube() -> FakeYouTube:
    return FakeYouTube()


# ---------------------------------------------------------------------------
# Hypothesis strategies (reusable across property tests)
# ---------------------------------------------------------------------------

ips = st.tuples(*(st.integers(min_value=0, max_value=255) for _ in range(4))).map(
    lambda parts: ".".join(str(p) for p in parts)
)
ports = st.integers(min_value=1, max_value=65535)
protocols = st.sampled_from(["http", "https"])
proxies = st.builds(Proxy, ip=ips, port=ports, protocol=protocols)
proxy_lists = st.lists(proxies, min_size=0, max_size=40)

video_ids = st.from_regex(r"[A-Za-z0-9_-]{11}", fullmatch=True)
