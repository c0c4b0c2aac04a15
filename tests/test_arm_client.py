import unittest

import httpx

from arcdefender.arm_client import ArmClient
from arcdefender.errors import ArmHttpError
from arcdefender.token_manager import TokenManager
from fakes import SUB, FakeArm, FakeCredential, mk_arm_client

LIST_PATH = f'/subscriptions/{SUB}/providers/Microsoft.Compute/virtualMachines'


class TestArmClient(unittest.TestCase):

    def test_pagination_consumes_every_page(self):
        fake = FakeArm()
        pages, page_size = 4, 5
        fake.add_list(LIST_PATH, [[{'id': 'vm-%d-%d' % (p, i)} for i in range(page_size)] for p in range(pages)])

        with mk_arm_client(fake) as arm:
            items = arm.list_all(LIST_PATH, '2021-04-01')

        ids = [i['id'] for i in items]
        self.assertEqual(len(ids), pages * page_size)
        self.assertEqual(len(set(ids)), pages * page_size)
        self.assertEqual(len(fake.requests), pages)

    def test_api_version_only_added_to_first_request(self):
        fake = FakeArm()
        fake.add_list(LIST_PATH, [[{'id': 'a'}], [{'id': 'b'}]])

        with mk_arm_client(fake) as arm:
            arm.list_all(LIST_PATH, '2021-04-01')

        first, second = fake.requests
        self.assertEqual(first.url.params.get_list('api-version'), ['2021-04-01'])
        # nextLink is followed verbatim
        self.assertEqual(second.url.params.get_list('api-version'), ['x'])
        self.assertEqual(second.url.params.get('page'), '1')

    def test_zero_length_pages_are_tolerated(self):
        fake = FakeArm()
        fake.add_list(LIST_PATH, [[], [{'id': 'a'}], [], [{'id': 'b'}], []])

        with mk_arm_client(fake) as arm:
            items = arm.list_all(LIST_PATH, '2021-04-01')

        self.assertEqual([i['id'] for i in items], ['a', 'b'])

    def test_repeated_next_link_stops_listing(self):
        requests = []

        def handler(request):
            requests.append(request)
            link = f'https://management.azure.com{LIST_PATH}?api-version=x&page=1'
            return httpx.Response(200, json={'value': [{'id': 'a'}], 'nextLink': link})

        arm = ArmClient(TokenManager(FakeCredential()), transport=httpx.MockTransport(handler))
        with arm:
            with self.assertRaises(ArmHttpError) as ctx:
                arm.list_all(LIST_PATH, '2021-04-01')

        self.assertEqual(len(requests), 2)
        self.assertIsNone(ctx.exception.status_code)
        self.assertEqual(ctx.exception.reason, 'RepeatedNextLink')

    def test_bearer_token_sent(self):
        fake = FakeArm()
        fake.add_list(LIST_PATH, [[]])
        with mk_arm_client(fake) as arm:
            arm.list_all(LIST_PATH, '2021-04-01')
        self.assertEqual(fake.requests[0].headers['Authorization'], 'Bearer token-1')

    def test_error_status_keeps_body(self):
        fake = FakeArm()
        fake.errors[LIST_PATH] = (403, '{"error":{"code":"AuthorizationFailed"}}')

        with mk_arm_client(fake) as arm:
            with self.assertRaises(ArmHttpError) as ctx:
                arm.list_all(LIST_PATH, '2021-04-01')

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.reason, 'Forbidden')
        self.assertIn('AuthorizationFailed', ctx.exception.body)

    def test_transport_error_has_no_status(self):
        def handler(request):
            raise httpx.ConnectTimeout('timed out', request=request)

        arm = ArmClient(TokenManager(FakeCredential()), transport=httpx.MockTransport(handler))
        with self.assertRaises(ArmHttpError) as ctx:
            arm.request('GET', LIST_PATH, '2021-04-01')
        arm.close()

        self.assertIsNone(ctx.exception.status_code)
        self.assertEqual(ctx.exception.reason, 'ConnectTimeout')


if __name__ == '__main__':
    unittest.main()
