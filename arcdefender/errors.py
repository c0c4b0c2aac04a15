from typing import Optional

from arcdefender.typedefs import ResourceKind


class ArcDefenderError(Exception):
  pass


class ConfigurationError(ArcDefenderError):
  """ Invalid combination of run parameters. Raised before any network call. """
  pass


class AuthenticationFailure(ArcDefenderError):
  """ A management API token could not be acquired or refreshed. Fatal for the run. """
  pass


class ArmHttpError(ArcDefenderError):
  """
  Non-2xx response (or transport failure, status_code=None) from Azure Resource Manager.
  Body is kept verbatim for the operator.
  """
  def __init__(self, method: str, url: str, status_code: Optional[int], reason: str, body: str):
    self.method = method
    self.url = url
    self.status_code = status_code
    self.reason = reason
    self.body = body
    super().__init__('%s %s failed: %s %s' % (method, url, status_code if status_code is not None else '-', reason))


class DiscoveryFailure(ArcDefenderError):
  def __init__(self, kind: ResourceKind, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
    self.kind = kind
    self.status_code = status_code
    self.body = body
    super().__init__('Listing %s failed: %s' % (kind.value, message))
