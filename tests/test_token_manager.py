import unittest

from azure.core.exceptions import ClientAuthenticationError

from arcdefender.errors import AuthenticationFailure
from arcdefender.token_manager import TokenManager
from fakes import FakeClock, FakeCredential


class TestTokenManager(unittest.TestCase):

    def test_first_call_acquires_token(self):
        credential = FakeCredential()
        manager = TokenManager(credential, clock=FakeClock())
        token = manager.ensure_fresh()
        self.assertEqual(token.token, 'token-1')
        self.assertEqual(credential.calls, 1)

    def test_far_future_expiry_is_not_refreshed(self):
        credential = FakeCredential()
        manager = TokenManager(credential, clock=FakeClock())
        for _ in range(10):
            manager.ensure_fresh()
        self.assertEqual(credential.calls, 1)
        self.assertEqual(manager.acquisitions, 1)

    def test_refresh_happens_inside_buffer(self):
        clock = FakeClock(now=1000.0)
        credential = FakeCredential(expires_on=1000 + 3600)
        manager = TokenManager(credential, refresh_buffer=300, clock=clock)
        manager.ensure_fresh()

        clock.now = 1000 + 3600 - 301
        manager.ensure_fresh()
        self.assertEqual(credential.calls, 1)

        clock.now = 1000 + 3600 - 300
        token = manager.ensure_fresh()
        self.assertEqual(credential.calls, 2)
        self.assertEqual(token.token, 'token-2')

    def test_expired_token_is_refreshed(self):
        clock = FakeClock(now=1000.0)
        credential = FakeCredential(expires_on=500)
        manager = TokenManager(credential, clock=clock)
        manager.ensure_fresh()
        manager.ensure_fresh()
        self.assertEqual(credential.calls, 2)

    def test_get_token_always_acquires(self):
        credential = FakeCredential()
        manager = TokenManager(credential, clock=FakeClock())
        manager.get_token()
        manager.get_token()
        self.assertEqual(credential.calls, 2)

    def test_credential_failure_raises_authentication_failure(self):
        credential = FakeCredential(error=ClientAuthenticationError(message='az login required'))
        manager = TokenManager(credential, clock=FakeClock())
        with self.assertRaises(AuthenticationFailure) as ctx:
            manager.ensure_fresh()
        self.assertIn('az login required', str(ctx.exception))
        self.assertTrue(manager.needs_refresh())


if __name__ == '__main__':
    unittest.main()
