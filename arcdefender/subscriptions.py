from typing import Callable, List

from azure.mgmt.resource import SubscriptionClient

from arcdefender.errors import ConfigurationError
from arcdefender.typedefs import AzureSub, RunConf

import logging
logger = logging.getLogger('arcdefender.subscriptions')


def list_subscriptions(client: SubscriptionClient) -> List[AzureSub]:
  subs = []
  for sub in client.subscriptions.list():
    subs.append(AzureSub(
      id=sub.id,
      guid=sub.subscription_id,
      name=sub.display_name,
      state=str(sub.state.value if hasattr(sub.state, 'value') else sub.state)
    ))
  return sorted(subs, key=lambda s: s.name.lower())


def select_subscription(subs: List[AzureSub], input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print) -> str:
  if not subs:
    raise ConfigurationError('No subscriptions available for this identity.')
  if len(subs) == 1:
    logger.info('Using the only available subscription %s (%s)', subs[0].name, subs[0].guid)
    return subs[0].guid

  for i, sub in enumerate(subs, start=1):
    output_fn('%3d) %s (%s) [%s]' % (i, sub.name, sub.guid, sub.state))
  answer = input_fn('Select subscription [1-%d]: ' % len(subs)).strip()
  for sub in subs:
    if answer.lower() == sub.guid.lower():
      return sub.guid
  if answer.isdigit() and 1 <= int(answer) <= len(subs):
    return subs[int(answer) - 1].guid
  raise ConfigurationError('Invalid subscription selection: %s' % answer)


def resolve_subscription_id(args: RunConf, credential) -> str:
  """ --subscription-id when given, otherwise ask the operator. """
  if args.subscription_id:
    return args.subscription_id
  subs = list_subscriptions(SubscriptionClient(credential))
  return select_subscription(subs)
