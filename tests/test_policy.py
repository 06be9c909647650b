"""Tests for the SMTP session policy."""

import logging

import pytest

from mail_sink.config import CredentialPair
from mail_sink.errors import AuthenticationFailed, SenderRejected
from mail_sink.policy import SessionPolicy


class TestSenderWhitelist:

    def test_whitelisted_sender_is_accepted(self):
        policy = SessionPolicy(whitelist={"a@x.com"})
        policy.evaluate_sender("a@x.com")

    def test_unlisted_sender_is_rejected_with_address(self):
        policy = SessionPolicy(whitelist={"a@x.com"})
        with pytest.raises(SenderRejected) as exc:
            policy.evaluate_sender("b@x.com")
        assert exc.value.address == "b@x.com"
        assert str(exc.value) == "Invalid email from: b@x.com"

    def test_empty_whitelist_accepts_everyone(self):
        policy = SessionPolicy()
        policy.evaluate_sender("a@x.com")
        policy.evaluate_sender("b@x.com")

    def test_match_is_exact(self):
        policy = SessionPolicy(whitelist={"a@x.com"})
        with pytest.raises(SenderRejected):
            policy.evaluate_sender("A@x.com")


class TestAuthentication:

    def test_matching_pair_is_accepted(self):
        policy = SessionPolicy(credentials=[CredentialPair("u", "p")])
        assert policy.auth_required is True
        assert policy.evaluate_auth("u", "p") == "u"

    @pytest.mark.parametrize("username,password", [("u", "wrong"), ("other", "p"), ("U", "p")])
    def test_mismatch_is_rejected(self, username, password):
        policy = SessionPolicy(credentials=[CredentialPair("u", "p")])
        with pytest.raises(AuthenticationFailed, match="Invalid username or password"):
            policy.evaluate_auth(username, password)

    def test_any_login_accepted_without_credentials(self):
        policy = SessionPolicy()
        assert policy.auth_required is False
        assert policy.evaluate_auth("anyone", "whatever") == "anyone"

    def test_plain_tuples_are_accepted_as_credentials(self):
        policy = SessionPolicy(credentials=[("u", "p"), ("v", "q")])
        assert policy.evaluate_auth("v", "q") == "v"

    def test_login_attempts_are_logged_without_password(self, caplog):
        policy = SessionPolicy(credentials=[CredentialPair("u", "s3cret")])
        with caplog.at_level(logging.INFO, logger="SessionPolicy"):
            with pytest.raises(AuthenticationFailed):
                policy.evaluate_auth("u", "s3cret-typo")
        assert "u is trying to login" in caplog.text
        assert "s3cret" not in caplog.text
