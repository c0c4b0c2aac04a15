import logging
import sys
from typing import List, Mapping, Tuple

from arcdefender.typedefs import RunConf, ResourceKind


def setup_logging(args: RunConf):
  level = logging.DEBUG if getattr(args, 'verbose', False) else logging.INFO
  logging.basicConfig(encoding='utf-8', level=level)
  logging.getLogger('arcdefender').setLevel(level)
  if args.log_output != 'defaulthandler':
    logging.getLogger('azure.identity').setLevel(logging.WARN)
    logging.getLogger('azure.core.pipeline.policies.http_logging_policy').setLevel(logging.WARN)
    logging.getLogger('httpx').setLevel(logging.WARN)
    rootlogger = logging.getLogger()
    rootlogger.handlers = []
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)
    rootlogger.addHandler(ch)


# Azure Resource Manager

MANAGEMENT_ENDPOINT = 'https://management.azure.com'
MANAGEMENT_SCOPE = 'https://management.azure.com/.default'

# (provider/type, api-version) used for listing each kind
RESOURCE_LIST_ENDPOINTS: Mapping[ResourceKind, Tuple[str, str]] = {
  ResourceKind.VirtualMachine: ('Microsoft.Compute/virtualMachines', '2021-04-01'),
  ResourceKind.VirtualMachineScaleSet: ('Microsoft.Compute/virtualMachineScaleSets', '2021-04-01'),
  ResourceKind.ArcMachine: ('Microsoft.HybridCompute/machines', '2022-12-27'),
}

# Defender pricing attaches through this sub-resource for every compute kind,
# scale sets and Arc machines included.
PRICING_SUBRESOURCE_PATH = '/providers/Microsoft.Security/pricings/virtualMachines'
PRICING_API_VERSION = '2024-01-01'
STANDARD_SUB_PLAN = 'P1'


# Timeouts, seconds

HTTP_TIMEOUT_SECONDS = 120.0
TOKEN_REFRESH_BUFFER_SECONDS = 300

BULK_REGISTRATION_TIMEOUT_SECONDS = 60.0
BULK_REGISTRATION_INTERVAL_SECONDS = 3.0
SINGLE_REGISTRATION_TIMEOUT_SECONDS = 300.0
SINGLE_REGISTRATION_INTERVAL_SECONDS = 10.0

REGISTRATION_FIRE_WORKERS = 8


# Providers needed for Arc onboarding and Defender for Servers
ARC_ONBOARDING_PROVIDERS: List[str] = [
  'Microsoft.HybridCompute',
  'Microsoft.GuestConfiguration',
  'Microsoft.HybridConnectivity',
  'Microsoft.AzureArcData',
  'Microsoft.Compute',
  'Microsoft.Security',
]
