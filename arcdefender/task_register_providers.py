from typing import Tuple

from azure.mgmt.resource import ResourceManagementClient

from arcdefender.ms_credential import get_ms_credential
from arcdefender.registration import ProviderRegistrar
from arcdefender.reporting import mk_provider_status_frame, mk_registration_frame
from arcdefender.subscriptions import resolve_subscription_id
from arcdefender.typedefs import RunConf
import arcdefender.settings as S

import logging
logger = logging.getLogger('arcdefender.task_register_providers')


def get_registrar(args: RunConf) -> ProviderRegistrar:
  credential = get_ms_credential(args)
  subscription_id = resolve_subscription_id(args, credential)
  client = ResourceManagementClient(credential=credential, subscription_id=subscription_id)
  return ProviderRegistrar(client.providers)


def mk_poll_settings(args: RunConf, provider_count: int) -> Tuple[float, float]:
  """ (timeout, interval); explicit values win, zero included. """
  if provider_count == 1:
    timeout, interval = S.SINGLE_REGISTRATION_TIMEOUT_SECONDS, S.SINGLE_REGISTRATION_INTERVAL_SECONDS
  else:
    timeout, interval = S.BULK_REGISTRATION_TIMEOUT_SECONDS, S.BULK_REGISTRATION_INTERVAL_SECONDS
  if args.timeout is not None:
    timeout = args.timeout
  if args.interval is not None:
    interval = args.interval
  return timeout, interval


async def do_task_register_providers(args: RunConf):
  providers = args.providers or S.ARC_ONBOARDING_PROVIDERS
  timeout, interval = mk_poll_settings(args, len(providers))
  registrar = get_registrar(args)

  if len(providers) == 1:
    result = registrar.register_one(providers[0], timeout=timeout, interval=interval)
  else:
    result = registrar.register_all(providers, timeout=timeout, interval=interval)

  print(mk_registration_frame(result).to_string(index=False))
  if result.still_pending:
    logger.warning('Still registering: %s. Run again later to confirm.', ', '.join(result.still_pending))
  logger.info('Task ready.')
  return 0


async def do_task_provider_status(args: RunConf):
  providers = args.providers or S.ARC_ONBOARDING_PROVIDERS
  states = get_registrar(args).get_states(providers)
  print(mk_provider_status_frame(states).to_string(index=False))
  return 0


def add_register_providers_subparser(subparsers):
  register_parser = subparsers.add_parser('register-providers', help='Register resource providers and wait for completion.')
  register_parser.set_defaults(task_func=do_task_register_providers)
  register_parser.add_argument('providers', nargs='*', help='Provider namespaces. Default: the Arc onboarding and Defender set.')
  register_parser.add_argument('--timeout', type=float, help='Total polling time in seconds. Default: %ss, or %ss for a single provider.' % (S.BULK_REGISTRATION_TIMEOUT_SECONDS, S.SINGLE_REGISTRATION_TIMEOUT_SECONDS))
  register_parser.add_argument('--interval', type=float, help='Seconds between polls. Default: %ss, or %ss for a single provider.' % (S.BULK_REGISTRATION_INTERVAL_SECONDS, S.SINGLE_REGISTRATION_INTERVAL_SECONDS))


def add_provider_status_subparser(subparsers):
  status_parser = subparsers.add_parser('provider-status', help='Show registration state of resource providers.')
  status_parser.set_defaults(task_func=do_task_provider_status)
  status_parser.add_argument('providers', nargs='*')
