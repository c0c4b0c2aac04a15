from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional, TypeAlias, Union
import json
import argparse
from dataclasses import dataclass, field

RunConf: TypeAlias = argparse.Namespace

ResourceId: TypeAlias = str
ProviderName: TypeAlias = str
SubGuid: TypeAlias = str


class ResourceKind(Enum):
  VirtualMachine = 'vm'
  VirtualMachineScaleSet = 'vmss'
  ArcMachine = 'arc'

  def __repr__(self) -> str:
    return str(self.value)

# Discovery and reporting order
ALL_RESOURCE_KINDS: List[ResourceKind] = [
  ResourceKind.VirtualMachine,
  ResourceKind.VirtualMachineScaleSet,
  ResourceKind.ArcMachine,
]

RESOURCE_KIND_LABELS: Mapping[ResourceKind, str] = {
  ResourceKind.VirtualMachine: 'Virtual machines',
  ResourceKind.VirtualMachineScaleSet: 'VM scale sets',
  ResourceKind.ArcMachine: 'Arc machines',
}


class RegistrationState(Enum):
  NotRegistered = 'NotRegistered'
  Registering = 'Registering'
  Registered = 'Registered'
  Unknown = 'Unknown'

  def __repr__(self) -> str:
    return str(self.value)


def map_registration_state(raw_state: Optional[str]) -> RegistrationState:
  if not raw_state:
    return RegistrationState.Unknown
  lowered = raw_state.lower()
  if lowered == 'registered':
    return RegistrationState.Registered
  elif lowered == 'registering':
    return RegistrationState.Registering
  elif lowered in ('notregistered', 'unregistered'):
    return RegistrationState.NotRegistered
  else:
    # Unregistering and anything ARM adds later
    return RegistrationState.Unknown


class PricingAction(Enum):
  Read = 'read'
  Free = 'free'
  Standard = 'standard'
  Delete = 'delete'

  @property
  def is_mutating(self) -> bool:
    return self != PricingAction.Read

  def __repr__(self) -> str:
    return str(self.value)


class ProviderNamespace(NamedTuple):
  name: ProviderName      # e.g. Microsoft.HybridCompute
  state: RegistrationState


class ManagedResource(NamedTuple):
  id: ResourceId          # /subscriptions/GUID/resourceGroups/...
  name: str
  kind: ResourceKind
  tags: Mapping[str, str]


class AccessToken(NamedTuple):
  token: str
  expires_on: int         # Epoch seconds


class AzureSub(NamedTuple):
  id: str    # /subscriptions/GUID
  guid: SubGuid
  name: str
  state: str


class ResourceGroupMode(NamedTuple):
  resource_group_name: str


class TagMode(NamedTuple):
  tag_name: str
  tag_value: str


DiscoveryMode: TypeAlias = Union[ResourceGroupMode, TagMode]


class PricingExtension(NamedTuple):
  name: str
  is_enabled: Optional[bool]


@dataclass
class PricingState:
  """
  The pricings/virtualMachines sub-resource as seen on a single resource.
  """
  pricing_tier: Optional[str]
  sub_plan: Optional[str] = None
  free_trial_remaining_time: Optional[str] = None
  enablement_time: Optional[str] = None
  deprecated: Optional[bool] = None
  extensions: List[PricingExtension] = field(default_factory=list)

  def as_table(self) -> Dict[str, str]:
    def s(value):
      return '' if value is None else str(value)
    extensions = ', '.join('%s: %s' % (e.name, s(e.is_enabled)) for e in self.extensions)
    return {
      'Pricing tier': s(self.pricing_tier),
      'Sub plan': s(self.sub_plan),
      'Free trial remaining': s(self.free_trial_remaining_time),
      'Enablement time': s(self.enablement_time),
      'Deprecated': s(self.deprecated),
      'Extensions': extensions,
    }


@dataclass
class Failure:
  reason: str
  status_code: Optional[int] = None
  status_text: Optional[str] = None
  body: Optional[str] = None


@dataclass
class OperationResult:
  target: str                          # Resource id or provider namespace
  kind: Optional[ResourceKind] = None
  failure: Optional[Failure] = None
  pricing: Optional[PricingState] = None

  @property
  def succeeded(self) -> bool:
    return self.failure is None


@dataclass
class TypeCounts:
  found: int = 0
  succeeded: int = 0
  failed: int = 0


@dataclass
class DiscoveredResources:
  resources: Dict[ResourceKind, List[ManagedResource]] = field(default_factory=dict)
  # Kinds whose listing failed, with the error that stopped them
  failures: Dict[ResourceKind, Exception] = field(default_factory=dict)

  @property
  def vms(self) -> List[ManagedResource]:
    return self.resources.get(ResourceKind.VirtualMachine, [])

  @property
  def scale_sets(self) -> List[ManagedResource]:
    return self.resources.get(ResourceKind.VirtualMachineScaleSet, [])

  @property
  def arc_machines(self) -> List[ManagedResource]:
    return self.resources.get(ResourceKind.ArcMachine, [])

  def all(self) -> List[ManagedResource]:
    result = []
    for kind in ALL_RESOURCE_KINDS:
      result.extend(self.resources.get(kind, []))
    return result


@dataclass
class PricingReport:
  action: PricingAction
  counts: Dict[ResourceKind, TypeCounts] = field(default_factory=lambda: {k: TypeCounts() for k in ALL_RESOURCE_KINDS})
  results: List[OperationResult] = field(default_factory=list)
  aborted: bool = False
  abort_reason: Optional[str] = None

  @property
  def total(self) -> TypeCounts:
    return TypeCounts(
      found=sum(c.found for c in self.counts.values()),
      succeeded=sum(c.succeeded for c in self.counts.values()),
      failed=sum(c.failed for c in self.counts.values()),
    )

  @property
  def failures(self) -> List[OperationResult]:
    return [r for r in self.results if not r.succeeded]


@dataclass
class RegistrationResult:
  registered: List[ProviderName] = field(default_factory=list)
  still_pending: List[ProviderName] = field(default_factory=list)
  # Registration requests that failed in the fire phase, message per provider
  fire_failures: Dict[ProviderName, str] = field(default_factory=dict)
  cancelled: bool = False

  @property
  def complete(self) -> bool:
    return not self.still_pending


ARCDEFENDER_TYPE = 'AD_TYPE'

encoded_dataclasses = {
  'PricingState': PricingState,
  'Failure': Failure,
  'OperationResult': OperationResult,
  'TypeCounts': TypeCounts,
}

encoded_enums = {
  'ResourceKind': ResourceKind,
  'RegistrationState': RegistrationState,
  'PricingAction': PricingAction,
}


class ArcDefenderEncoder(json.JSONEncoder):
  def default(self, obj):
    result = None
    typename = type(obj).__name__
    if typename in encoded_enums:
      return obj.value
    elif typename in encoded_dataclasses:
      result = obj.__dict__.copy()
      if typename == 'OperationResult':
        result['succeeded'] = obj.succeeded
      elif typename == 'PricingState':
        result['extensions'] = [e._asdict() for e in obj.extensions]
    if result is not None:
      result[ARCDEFENDER_TYPE] = typename
      return result
    else:
      return super().default(obj)
