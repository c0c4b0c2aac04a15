import pandas as pd
from azure.mgmt.resource import SubscriptionClient

from arcdefender.ms_credential import get_ms_credential
from arcdefender.subscriptions import list_subscriptions
from arcdefender.typedefs import RunConf

import logging
logger = logging.getLogger('arcdefender.task_list_subscriptions')


async def do_task_list_subscriptions(args: RunConf):
  subs = list_subscriptions(SubscriptionClient(get_ms_credential(args)))
  logger.info('Found %d subscriptions.', len(subs))
  df = pd.DataFrame(data={
    'Name': [s.name for s in subs],
    'Subscription id': [s.guid for s in subs],
    'State': [s.state for s in subs],
  })
  print(df.to_string(index=False))
  return 0


def add_list_subscriptions_subparser(subparsers):
  list_parser = subparsers.add_parser('list-subscriptions', help='List subscriptions visible to the credential.')
  list_parser.set_defaults(task_func=do_task_list_subscriptions)
