"""Identity token handling."""
from finsync_proxy.auth.token_codec import TokenCodec

__all__ = ["TokenCodec"]
