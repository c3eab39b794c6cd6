"""Friend API credential storage."""
from finsync_proxy.credentials.cipher import CredentialCipher
from finsync_proxy.credentials.cookies import (extract_cookie_pairs,
                                             merge_cookie_pairs)
from finsync_proxy.credentials.store import (CredentialStoreABC,
                                             FriendApiSecret,
                                             SqlCredentialStore)

__all__ = [
    "CredentialCipher",
    "CredentialStoreABC",
    "FriendApiSecret",
    "SqlCredentialStore",
    "extract_cookie_pairs",
    "merge_cookie_pairs",
]
