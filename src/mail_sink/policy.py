# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP session policy: sender whitelist and credential checks.

Both checks are pure lookups over settings fixed at startup, so a single
:class:`SessionPolicy` is shared by every connection.

Example::

    policy = SessionPolicy(whitelist={"app@example.com"},
                           credentials=[CredentialPair("u", "p")])
    policy.evaluate_sender("app@example.com")      # accepted
    identity = policy.evaluate_auth("u", "p")      # "u"
    policy.evaluate_auth("u", "nope")              # AuthenticationFailed
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import CredentialPair
from .errors import AuthenticationFailed, SenderRejected
from .logger import get_logger

logger = get_logger("SessionPolicy")


class SessionPolicy:
    """Decides which senders are accepted and whether clients must log in.

    Attributes:
        whitelist: Exact sender strings accepted; empty accepts all.
        credentials: Valid SMTP logins; empty makes authentication optional.
    """

    def __init__(
        self,
        whitelist: Iterable[str] = (),
        credentials: Iterable[CredentialPair] = (),
    ):
        self.whitelist = frozenset(whitelist)
        self.credentials = frozenset(CredentialPair(*pair) for pair in credentials)

    @property
    def auth_required(self) -> bool:
        """True when at least one credential pair is configured."""
        return bool(self.credentials)

    def evaluate_sender(self, address: str) -> None:
        """Accept ``address`` or raise.

        Raises:
            SenderRejected: If a whitelist is set and lacks ``address``.
        """
        if self.whitelist and address not in self.whitelist:
            raise SenderRejected(address)

    def evaluate_auth(self, username: str, password: str) -> str:
        """Check an SMTP login and return the session identity.

        Without configured credentials every login succeeds with the offered
        username. Otherwise the pair must match one configured pair exactly.

        Raises:
            AuthenticationFailed: If credentials are configured and none match.
        """
        if not self.auth_required:
            logger.info(f"SMTP login for user: {username}")
            return username
        logger.info(f"{username} is trying to login")
        if CredentialPair(username, password) in self.credentials:
            return username
        logger.warning(f"SMTP login rejected for user: {username}")
        raise AuthenticationFailed()
