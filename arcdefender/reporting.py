import json
from typing import List, Optional

import pandas as pd

from arcdefender.typedefs import (
  ALL_RESOURCE_KINDS,
  RESOURCE_KIND_LABELS,
  ArcDefenderEncoder,
  DiscoveredResources,
  PricingAction,
  PricingReport,
  ProviderNamespace,
  RegistrationResult,
)


def mk_summary_frame(report: PricingReport) -> pd.DataFrame:
  kinds = [RESOURCE_KIND_LABELS[k] for k in ALL_RESOURCE_KINDS] + ['Total']
  counts = [report.counts[k] for k in ALL_RESOURCE_KINDS] + [report.total]
  d = {
    'Resource type': kinds,
    'Found': [c.found for c in counts],
    'Succeeded': [c.succeeded for c in counts],
    'Failed': [c.failed for c in counts],
  }
  return pd.DataFrame(data=d)


def mk_pricing_state_frame(report: PricingReport) -> pd.DataFrame:
  rows = []
  for result in report.results:
    if result.succeeded and result.pricing:
      row = {'Resource': result.target.split('/')[-1], 'Type': result.kind.value if result.kind else ''}
      row.update(result.pricing.as_table())
      rows.append(row)
  return pd.DataFrame(rows)


def render_report_text(report: PricingReport, discovered: Optional[DiscoveredResources] = None) -> str:
  lines: List[str] = []
  lines.append('Defender pricing action: %s' % report.action.value)
  lines.append(mk_summary_frame(report).to_string(index=False))

  if discovered and discovered.failures:
    lines.append('')
    lines.append('Discovery failures:')
    for kind, error in discovered.failures.items():
      lines.append(' * %s: %s' % (RESOURCE_KIND_LABELS[kind], error))
      body = getattr(error, 'body', None)
      if body:
        lines.append('   %s' % body)

  if report.action == PricingAction.Read:
    states = mk_pricing_state_frame(report)
    if not states.empty:
      lines.append('')
      lines.append(states.to_string(index=False))

  if report.failures:
    lines.append('')
    lines.append('Failures:')
    for result in report.failures:
      failure = result.failure
      assert failure is not None
      status = '%s %s' % (failure.status_code, failure.status_text) if failure.status_code is not None else '-'
      lines.append(' * %s' % result.target)
      lines.append('   status: %s' % status)
      lines.append('   %s' % (failure.body or failure.reason))

  if report.aborted:
    lines.append('')
    lines.append('Run aborted: %s' % report.abort_reason)
  return '\n'.join(lines)


def mk_discovery_failure_dict(error: Exception) -> dict:
  return {
    'reason': str(error),
    'status_code': getattr(error, 'status_code', None),
    'body': getattr(error, 'body', None),
  }


def report_to_dict(report: PricingReport, discovered: Optional[DiscoveredResources] = None) -> dict:
  return {
    'action': report.action,
    'counts': {k.value: report.counts[k] for k in ALL_RESOURCE_KINDS},
    'total': report.total,
    'aborted': report.aborted,
    'abortReason': report.abort_reason,
    'discoveryFailures': {k.value: mk_discovery_failure_dict(e) for k, e in (discovered.failures.items() if discovered else [])},
    'results': report.results,
  }


def render_report_json(report: PricingReport, discovered: Optional[DiscoveredResources] = None) -> str:
  return json.dumps(report_to_dict(report, discovered), cls=ArcDefenderEncoder, indent=2)


def mk_registration_frame(result: RegistrationResult) -> pd.DataFrame:
  d = {
    'Provider': result.registered + result.still_pending,
    'Result': ['Registered'] * len(result.registered) + ['Still pending'] * len(result.still_pending),
    'Request error': [result.fire_failures.get(p, '') for p in result.registered + result.still_pending],
  }
  return pd.DataFrame(data=d)


def mk_provider_status_frame(states: List[ProviderNamespace]) -> pd.DataFrame:
  d = {
    'Provider': [s.name for s in states],
    'State': [s.state.value for s in states],
  }
  return pd.DataFrame(data=d)
