from typing import List

from arcdefender.arm_client import ArmClient
from arcdefender.errors import ArmHttpError, DiscoveryFailure
from arcdefender.settings import RESOURCE_LIST_ENDPOINTS
from arcdefender.typedefs import ALL_RESOURCE_KINDS, DiscoveredResources, DiscoveryMode, ManagedResource, ResourceGroupMode, ResourceKind, TagMode

import logging
logger = logging.getLogger('arcdefender.discovery')


def mk_list_path(subscription_id: str, kind: ResourceKind, mode: DiscoveryMode) -> str:
  provider_type, _ = RESOURCE_LIST_ENDPOINTS[kind]
  if isinstance(mode, ResourceGroupMode):
    return f'/subscriptions/{subscription_id}/resourceGroups/{mode.resource_group_name}/providers/{provider_type}'
  # Tag mode lists subscription-wide, filtering happens client-side
  return f'/subscriptions/{subscription_id}/providers/{provider_type}'


def to_managed_resource(kind: ResourceKind, obj: dict) -> ManagedResource:
  return ManagedResource(
    id=obj['id'],
    name=obj.get('name') or obj['id'].split('/')[-1],
    kind=kind,
    tags=obj.get('tags') or {}
  )


def matches_tag(resource: ManagedResource, tag_name: str, tag_value: str) -> bool:
  return tag_name in resource.tags and resource.tags[tag_name] == tag_value


def list_resources(arm: ArmClient, subscription_id: str, kind: ResourceKind, mode: DiscoveryMode) -> List[ManagedResource]:
  """
  All resources of one kind for the mode. Raises DiscoveryFailure with the
  HTTP status and body when any page fails.
  """
  _, api_version = RESOURCE_LIST_ENDPOINTS[kind]
  path = mk_list_path(subscription_id, kind, mode)
  try:
    raw_items = arm.list_all(path, api_version)
  except ArmHttpError as e:
    raise DiscoveryFailure(kind, str(e), e.status_code, e.body) from e

  resources = [to_managed_resource(kind, obj) for obj in raw_items]
  if isinstance(mode, TagMode):
    matching = [r for r in resources if matches_tag(r, mode.tag_name, mode.tag_value)]
    logger.info('%s: %d of %d listed match tag %s=%s', kind.value, len(matching), len(resources), mode.tag_name, mode.tag_value)
    return matching
  logger.info('%s: found %d in resource group %s', kind.value, len(resources), mode.resource_group_name)
  return resources


def discover(arm: ArmClient, subscription_id: str, mode: DiscoveryMode) -> DiscoveredResources:
  """
  Lists every resource kind. A kind that fails is recorded in failures and
  the remaining kinds are still listed. AuthenticationFailure is not caught.
  """
  result = DiscoveredResources()
  for kind in ALL_RESOURCE_KINDS:
    try:
      result.resources[kind] = list_resources(arm, subscription_id, kind, mode)
    except DiscoveryFailure as e:
      logger.error('%s (status=%s): %s', e, e.status_code, e.body)
      result.failures[kind] = e
      result.resources[kind] = []
  return result
