import argparse
import asyncio
import sys

from arcdefender.errors import ArcDefenderError, AuthenticationFailure
from arcdefender.settings import setup_logging, HTTP_TIMEOUT_SECONDS, TOKEN_REFRESH_BUFFER_SECONDS
from arcdefender.task_list_subscriptions import add_list_subscriptions_subparser
from arcdefender.task_pricing import add_pricing_subparser
from arcdefender.task_register_providers import add_provider_status_subparser, add_register_providers_subparser
from arcdefender import utils

import logging
logger = logging.getLogger('arcdefender.run')


def mk_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog='arc-defender',
    description='Azure Arc onboarding helpers: resource provider registration and Defender for Servers pricing.',
    epilog='')
  parser.add_argument('--subscription-id', type=str, help='Target subscription. Prompted for when omitted.')
  parser.add_argument('--tenant-id', type=str, help='Optional: tenant to authenticate against.')
  parser.add_argument('--auth', choices=['azcli', 'systemassignedmanagedidentity', 'browser', 'devicecode'], default='azcli', help='Configure what credentials are used: AzCliCredentials, a Managed Identity, interactive browser or device code. Default: azcli')
  parser.add_argument('--http-timeout', type=float, default=HTTP_TIMEOUT_SECONDS, help='Per-request timeout in seconds for management API calls.')
  parser.add_argument('--token-refresh-buffer', type=float, default=TOKEN_REFRESH_BUFFER_SECONDS, help='Refresh the access token when it expires within this many seconds.')
  parser.add_argument('--log-output', choices=['stdout', 'defaulthandler'], default='stdout', help='Configure logging.')
  parser.add_argument('--verbose', action='store_true', help='Debug level logging.')
  parser.add_argument('--debug', action='store_true', help='Enable debugpy debugging.')

  subparsers = parser.add_subparsers(required=True)
  add_pricing_subparser(subparsers)
  add_register_providers_subparser(subparsers)
  add_provider_status_subparser(subparsers)
  add_list_subscriptions_subparser(subparsers)
  return parser


async def main(arg_string=None) -> int:
  args = mk_parser().parse_args(arg_string)
  setup_logging(args)

  if args.debug:
    utils.prepare_debug()
  try:
    return await args.task_func(args)
  except AuthenticationFailure as e:
    logger.error('Authentication failed, cannot continue: %s', e)
    return 1
  except ArcDefenderError as e:
    logger.error('%s', e)
    return 1


def cli():
  sys.exit(asyncio.run(main()))
