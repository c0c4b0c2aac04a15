from typing import Optional, Set, Tuple

from arcdefender.arm_client import ArmClient
from arcdefender.errors import ArmHttpError, AuthenticationFailure
from arcdefender.settings import PRICING_API_VERSION, PRICING_SUBRESOURCE_PATH, STANDARD_SUB_PLAN
from arcdefender.typedefs import (
  ALL_RESOURCE_KINDS,
  DiscoveredResources,
  Failure,
  ManagedResource,
  OperationResult,
  PricingAction,
  PricingExtension,
  PricingReport,
  PricingState,
)

import logging
logger = logging.getLogger('arcdefender.pricing')


def mk_pricing_path(resource_id: str) -> str:
  # Same sub-resource for VMs, scale sets and Arc machines
  return resource_id.rstrip('/') + PRICING_SUBRESOURCE_PATH


def mk_pricing_request(action: PricingAction) -> Tuple[str, Optional[dict]]:
  """ HTTP method and body for an action """
  if action == PricingAction.Read:
    return 'GET', None
  elif action == PricingAction.Delete:
    return 'DELETE', None
  elif action == PricingAction.Free:
    return 'PUT', {'properties': {'pricingTier': 'free'}}
  elif action == PricingAction.Standard:
    return 'PUT', {'properties': {'pricingTier': 'standard', 'subPlan': STANDARD_SUB_PLAN}}
  else:
    raise Exception('Unknown pricing action: %s' % action)


def parse_pricing_state(obj: dict) -> PricingState:
  props = obj.get('properties') or {}
  extensions = [PricingExtension(name=e.get('name'), is_enabled=_as_bool(e.get('isEnabled')))
                for e in (props.get('extensions') or [])]
  return PricingState(
    pricing_tier=props.get('pricingTier'),
    sub_plan=props.get('subPlan'),
    free_trial_remaining_time=props.get('freeTrialRemainingTime'),
    enablement_time=props.get('enablementTime'),
    deprecated=props.get('deprecated'),
    extensions=extensions
  )


def _as_bool(value) -> Optional[bool]:
  # isEnabled comes back as "True"/"False" strings
  if value is None or isinstance(value, bool):
    return value
  return str(value).lower() == 'true'


class PricingEngine(object):
  def __init__(self, arm: ArmClient):
    self._arm = arm

  def apply_one(self, resource: ManagedResource, action: PricingAction) -> OperationResult:
    """
    Never raises on HTTP errors; they are returned as the failure.
    AuthenticationFailure propagates.
    """
    method, body = mk_pricing_request(action)
    path = mk_pricing_path(resource.id)
    try:
      response = self._arm.request(method, path, PRICING_API_VERSION, json=body)
    except ArmHttpError as e:
      logger.error('%s %s: %s %s', action.value, resource.name, e.status_code, e.body)
      return OperationResult(
        target=resource.id,
        kind=resource.kind,
        failure=Failure(reason=str(e), status_code=e.status_code, status_text=e.reason, body=e.body)
      )

    pricing = None
    if action != PricingAction.Delete and response.content:
      try:
        pricing = parse_pricing_state(response.json())
      except (ValueError, AttributeError) as e:
        # e.g. an HTML page from a gateway with a 200 status
        logger.error('%s %s: unreadable response: %s', action.value, resource.name, e)
        return OperationResult(
          target=resource.id,
          kind=resource.kind,
          failure=Failure(reason='Unreadable pricing response: %s' % e, status_code=response.status_code,
                          status_text=response.reason_phrase, body=response.text)
        )
    logger.info('%s %s: ok%s', action.value, resource.name, (' (tier=%s)' % pricing.pricing_tier) if pricing else '')
    return OperationResult(target=resource.id, kind=resource.kind, pricing=pricing)

  def apply(self, resources: DiscoveredResources, action: PricingAction) -> PricingReport:
    """
    Attempts every discovered resource once. Failures are counted, not raised.
    A failing token refresh halts the batch and marks the report aborted.
    """
    report = PricingReport(action=action)
    seen: Set[str] = set()
    batch = []
    for kind in ALL_RESOURCE_KINDS:
      for resource in resources.resources.get(kind, []):
        if resource.id.lower() in seen:
          logger.warning('Skipping duplicate resource %s', resource.id)
          continue
        seen.add(resource.id.lower())
        batch.append(resource)
        report.counts[kind].found += 1

    for resource in batch:
      counts = report.counts[resource.kind]
      try:
        result = self.apply_one(resource, action)
      except AuthenticationFailure as e:
        logger.error('Token refresh failed at %s, halting: %s', resource.id, e)
        report.results.append(OperationResult(target=resource.id, kind=resource.kind, failure=Failure(reason=str(e))))
        counts.failed += 1
        report.aborted = True
        report.abort_reason = str(e)
        break
      report.results.append(result)
      if result.succeeded:
        counts.succeeded += 1
      else:
        counts.failed += 1

    total = report.total
    logger.info('Pricing %s done: found=%d succeeded=%d failed=%d', action.value, total.found, total.succeeded, total.failed)
    return report
