import asyncio
import unittest

from azure.identity import AzureCliCredential, DeviceCodeCredential

from arcdefender.errors import ConfigurationError, DiscoveryFailure
from arcdefender.ms_credential import get_ms_credential
from arcdefender.run import main, mk_parser
from arcdefender.subscriptions import select_subscription
from arcdefender.task_pricing import exit_code, mk_discovery_mode
from arcdefender.task_register_providers import mk_poll_settings
from arcdefender.typedefs import AzureSub, DiscoveredResources, PricingAction, PricingReport, ResourceGroupMode, ResourceKind, TagMode
from arcdefender.utils import confirm, count_s

SUBS = [
    AzureSub(id='/subscriptions/aaa', guid='aaa', name='Alpha', state='Enabled'),
    AzureSub(id='/subscriptions/bbb', guid='bbb', name='Beta', state='Enabled'),
]


class TestCli(unittest.TestCase):

    def test_pricing_arguments(self):
        args = mk_parser().parse_args(['--subscription-id', 'sub', 'pricing', '--mode', 'ResourceGroup',
                                       '--resource-group-name', 'rg-test', '--action', 'standard', '--yes'])
        self.assertEqual(args.action, 'standard')
        self.assertTrue(args.yes)
        self.assertEqual(args.auth, 'azcli')
        self.assertEqual(mk_discovery_mode(args), ResourceGroupMode('rg-test'))

    def test_tag_mode(self):
        args = mk_parser().parse_args(['pricing', '--mode', 'Tag', '--tag-name', 'env', '--tag-value', '', '--action', 'read'])
        self.assertEqual(mk_discovery_mode(args), TagMode('env', ''))

    def test_missing_mode_arguments(self):
        parser = mk_parser()
        with self.assertRaises(ConfigurationError):
            mk_discovery_mode(parser.parse_args(['pricing', '--mode', 'ResourceGroup', '--action', 'read']))
        with self.assertRaises(ConfigurationError):
            mk_discovery_mode(parser.parse_args(['pricing', '--mode', 'Tag', '--tag-name', 'env', '--action', 'read']))

    def test_configuration_error_exits_before_network(self):
        result = asyncio.run(main(['--log-output', 'defaulthandler', 'pricing', '--mode', 'Tag', '--action', 'read']))
        self.assertEqual(result, 1)

    def test_register_providers_arguments(self):
        args = mk_parser().parse_args(['register-providers', 'Microsoft.HybridCompute', '--timeout', '30'])
        self.assertEqual(args.providers, ['Microsoft.HybridCompute'])
        self.assertEqual(args.timeout, 30.0)
        self.assertIsNone(args.interval)

    def test_poll_settings(self):
        parser = mk_parser()
        self.assertEqual(mk_poll_settings(parser.parse_args(['register-providers']), 6), (60.0, 3.0))
        self.assertEqual(mk_poll_settings(parser.parse_args(['register-providers', 'Microsoft.Security']), 1), (300.0, 10.0))
        args = parser.parse_args(['register-providers', '--timeout', '0', '--interval', '0'])
        self.assertEqual(mk_poll_settings(args, 6), (0.0, 0.0))
        self.assertEqual(mk_poll_settings(args, 1), (0.0, 0.0))

    def test_pricing_exit_code(self):
        discovered = DiscoveredResources()
        self.assertEqual(exit_code(PricingReport(action=PricingAction.Read), discovered), 0)

        aborted = PricingReport(action=PricingAction.Free, aborted=True, abort_reason='token')
        self.assertEqual(exit_code(aborted, discovered), 1)

        discovered.failures[ResourceKind.ArcMachine] = DiscoveryFailure(ResourceKind.ArcMachine, 'forbidden', 403)
        self.assertEqual(exit_code(PricingReport(action=PricingAction.Read), discovered), 1)

    def test_confirm(self):
        self.assertTrue(confirm('go?', input_fn=lambda _: 'y'))
        self.assertTrue(confirm('go?', input_fn=lambda _: ' YES '))
        self.assertFalse(confirm('go?', input_fn=lambda _: ''))
        self.assertFalse(confirm('go?', input_fn=lambda _: 'no'))

    def test_credential_selection(self):
        self.assertIsInstance(get_ms_credential(mk_parser().parse_args(['list-subscriptions'])), AzureCliCredential)
        args = mk_parser().parse_args(['--auth', 'devicecode', '--tenant-id', 't', 'list-subscriptions'])
        self.assertIsInstance(get_ms_credential(args), DeviceCodeCredential)

    def test_count_s(self):
        self.assertEqual(count_s(0, 0), '0 of 0')
        self.assertEqual(count_s(1, 3), '1 of 3 / 33 %')


class TestSubscriptionSelection(unittest.TestCase):

    def test_single_subscription_is_picked(self):
        self.assertEqual(select_subscription(SUBS[:1], input_fn=lambda _: self.fail('asked')), 'aaa')

    def test_select_by_index_or_guid(self):
        out = []
        self.assertEqual(select_subscription(SUBS, input_fn=lambda _: '2', output_fn=out.append), 'bbb')
        self.assertEqual(len(out), 2)
        self.assertEqual(select_subscription(SUBS, input_fn=lambda _: 'AAA', output_fn=out.append), 'aaa')

    def test_invalid_selection(self):
        with self.assertRaises(ConfigurationError):
            select_subscription(SUBS, input_fn=lambda _: '3', output_fn=lambda _: None)
        with self.assertRaises(ConfigurationError):
            select_subscription([], input_fn=lambda _: '1')


if __name__ == '__main__':
    unittest.main()
