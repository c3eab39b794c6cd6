"""Upstream providers.

- FriendApiClient: the session-cookie authenticated Friend API finance backend.

Example:
    client = FriendApiClient("https://finance-portfolio-management-apis.onrender.com")
    response = await client.login("me@example.com", "secret")
    cookie = response.headers.get("set-cookie")
    await client.close()
"""
from finsync_proxy.providers.core import ProxyError, ProxyErrorMapper
from finsync_proxy.providers.friend_api import FriendApiClient

__all__ = ["FriendApiClient", "ProxyError", "ProxyErrorMapper"]
