import time
from typing import Callable, Optional

from azure.core.exceptions import AzureError

from arcdefender.errors import AuthenticationFailure
from arcdefender.settings import MANAGEMENT_SCOPE, TOKEN_REFRESH_BUFFER_SECONDS
from arcdefender.typedefs import AccessToken

import logging
logger = logging.getLogger('arcdefender.token_manager')


class TokenManager(object):
  """
  Single owner of the management API bearer token for one run.

  Callers borrow the token through ensure_fresh() right before each request
  and never keep their own copy.
  """

  def __init__(self, credential, scope: str = MANAGEMENT_SCOPE,
               refresh_buffer: float = TOKEN_REFRESH_BUFFER_SECONDS,
               clock: Callable[[], float] = time.time):
    self._credential = credential
    self._scope = scope
    self._refresh_buffer = refresh_buffer
    self._clock = clock
    self._token: Optional[AccessToken] = None
    self.acquisitions = 0

  def get_token(self) -> AccessToken:
    """ Acquire a new token unconditionally. """
    try:
      raw = self._credential.get_token(self._scope)
    except AzureError as e:
      logger.error('Could not acquire token for %s: %s', self._scope, e)
      raise AuthenticationFailure('Could not acquire token for %s: %s' % (self._scope, e)) from e
    self._token = AccessToken(token=raw.token, expires_on=int(raw.expires_on))
    self.acquisitions += 1
    logger.debug('Acquired token, expires_on=%d', self._token.expires_on)
    return self._token

  def needs_refresh(self) -> bool:
    if self._token is None:
      return True
    return self._clock() + self._refresh_buffer >= self._token.expires_on

  def ensure_fresh(self) -> AccessToken:
    if self.needs_refresh():
      if self._token is not None:
        logger.info('Token expires within %d seconds, refreshing.', self._refresh_buffer)
      return self.get_token()
    assert self._token is not None
    return self._token
