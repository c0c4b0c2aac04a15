from arcdefender.arm_client import ArmClient
from arcdefender.discovery import discover
from arcdefender.errors import ConfigurationError
from arcdefender.ms_credential import get_ms_credential
from arcdefender.pricing import PricingEngine
from arcdefender.reporting import render_report_json, render_report_text
from arcdefender.subscriptions import resolve_subscription_id
from arcdefender.token_manager import TokenManager
from arcdefender.typedefs import DiscoveredResources, DiscoveryMode, PricingAction, PricingReport, ResourceGroupMode, RunConf, TagMode
from arcdefender import utils

import logging
logger = logging.getLogger('arcdefender.task_pricing')


def mk_discovery_mode(args: RunConf) -> DiscoveryMode:
  if args.mode == 'ResourceGroup':
    if not args.resource_group_name:
      raise ConfigurationError('--resource-group-name is required with --mode ResourceGroup')
    return ResourceGroupMode(resource_group_name=args.resource_group_name)
  elif args.mode == 'Tag':
    if not args.tag_name or args.tag_value is None:
      raise ConfigurationError('--tag-name and --tag-value are required with --mode Tag')
    return TagMode(tag_name=args.tag_name, tag_value=args.tag_value)
  else:
    raise ConfigurationError('Unknown mode: %s' % args.mode)


def exit_code(report: PricingReport, discovered: DiscoveredResources) -> int:
  """ 1 when the run was aborted or any resource kind could not be listed. """
  if report.aborted or discovered.failures:
    return 1
  return 0


async def do_task_pricing(args: RunConf):
  mode = mk_discovery_mode(args)
  action = PricingAction(args.action)
  credential = get_ms_credential(args)
  subscription_id = resolve_subscription_id(args, credential)

  if action.is_mutating and not args.yes:
    if not utils.confirm('Set Defender pricing "%s" on every matching resource in %s?' % (action.value, subscription_id)):
      logger.warning('Cancelled by user, nothing changed.')
      return 0

  token_manager = TokenManager(credential, refresh_buffer=args.token_refresh_buffer)
  token_manager.get_token()

  with ArmClient(token_manager, timeout=args.http_timeout) as arm:
    discovered = discover(arm, subscription_id, mode)
    report = PricingEngine(arm).apply(discovered, action)

  total = report.total
  logger.info('Succeeded: %s', utils.count_s(total.succeeded, total.found))
  if args.output == 'json':
    print(render_report_json(report, discovered))
  else:
    print(render_report_text(report, discovered))
  logger.info('Task ready.')
  return exit_code(report, discovered)


def add_pricing_subparser(subparsers):
  pricing_parser = subparsers.add_parser('pricing', help='Read or set Defender for Servers pricing on VMs, scale sets and Arc machines.')
  pricing_parser.set_defaults(task_func=do_task_pricing)
  pricing_parser.add_argument('--mode', choices=['ResourceGroup', 'Tag'], required=True)
  pricing_parser.add_argument('--resource-group-name')
  pricing_parser.add_argument('--tag-name')
  pricing_parser.add_argument('--tag-value')
  pricing_parser.add_argument('--action', choices=[a.value for a in PricingAction], required=True)
  pricing_parser.add_argument('--output', choices=['table', 'json'], default='table')
  pricing_parser.add_argument('--yes', action='store_true', help='Do not ask for confirmation before changing pricing.')
