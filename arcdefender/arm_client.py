from typing import Any, List, Optional, Set

import httpx

from arcdefender.errors import ArmHttpError
from arcdefender.settings import HTTP_TIMEOUT_SECONDS, MANAGEMENT_ENDPOINT
from arcdefender.token_manager import TokenManager

import logging
logger = logging.getLogger('arcdefender.arm_client')


class ArmClient(object):
  """
  Thin Azure Resource Manager REST client. Every request borrows a fresh
  token from the TokenManager; errors are raised as ArmHttpError, never retried.
  """

  def __init__(self, token_manager: TokenManager, base_url: str = MANAGEMENT_ENDPOINT,
               timeout: float = HTTP_TIMEOUT_SECONDS, transport: Optional[httpx.BaseTransport] = None):
    self._token_manager = token_manager
    self._base_url = base_url.rstrip('/')
    self._client = httpx.Client(timeout=httpx.Timeout(timeout), transport=transport)

  def __enter__(self):
    return self

  def __exit__(self, *exc):
    self.close()

  def close(self):
    self._client.close()

  def _url(self, path: str) -> str:
    if path.startswith('https://') or path.startswith('http://'):
      return path
    return self._base_url + path

  def request(self, method: str, path: str, api_version: Optional[str] = None, json: Any = None) -> httpx.Response:
    """
    path is either relative to the management endpoint (api_version is then
    added as a query parameter) or an absolute nextLink, used as-is.
    """
    token = self._token_manager.ensure_fresh()
    headers = {
      'Authorization': f'Bearer {token.token}',
      'Content-Type': 'application/json',
    }
    url = self._url(path)
    params = {'api-version': api_version} if api_version else None
    logger.debug('%s %s', method, url)
    try:
      response = self._client.request(method, url, params=params, headers=headers, json=json)
    except httpx.HTTPError as e:
      raise ArmHttpError(method, url, None, type(e).__name__, str(e)) from e
    if response.is_error:
      raise ArmHttpError(method, str(response.request.url), response.status_code, response.reason_phrase, response.text)
    return response

  def list_all(self, path: str, api_version: str) -> List[dict]:
    """ Follow nextLink until absent and return the merged 'value' items. """
    items: List[dict] = []
    pages = 0
    url: Optional[str] = path
    version: Optional[str] = api_version
    visited: Set[str] = set()
    while url:
      if self._url(url) in visited:
        raise ArmHttpError('GET', url, None, 'RepeatedNextLink', 'nextLink already visited after %d pages' % pages)
      visited.add(self._url(url))
      data = self.request('GET', url, version).json()
      pages += 1
      items.extend(data.get('value') or [])
      url = data.get('nextLink')
      version = None  # nextLink carries its own api-version
    logger.debug('Listed %d items in %d pages from %s', len(items), pages, path)
    return items
