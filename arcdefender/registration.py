import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional

from azure.core.exceptions import AzureError, ClientAuthenticationError

from arcdefender.errors import AuthenticationFailure
from arcdefender.settings import (
  BULK_REGISTRATION_INTERVAL_SECONDS,
  BULK_REGISTRATION_TIMEOUT_SECONDS,
  REGISTRATION_FIRE_WORKERS,
  SINGLE_REGISTRATION_INTERVAL_SECONDS,
  SINGLE_REGISTRATION_TIMEOUT_SECONDS,
)
from arcdefender.typedefs import ProviderName, ProviderNamespace, RegistrationResult, RegistrationState, map_registration_state

import logging
logger = logging.getLogger('arcdefender.registration')


class ProviderRegistrar(object):
  """
  Registers resource providers in a subscription and polls until they are
  Registered or the timeout runs out.

  providers is the `providers` operation group of an
  azure.mgmt.resource.ResourceManagementClient (get/register by namespace).
  clock and sleep are injectable; when sleep is not given, waiting honours
  the cancel event so a poll can be stopped without waiting out the interval.
  """

  def __init__(self, providers, clock: Callable[[], float] = time.monotonic,
               sleep: Optional[Callable[[float], None]] = None,
               fire_workers: int = REGISTRATION_FIRE_WORKERS):
    self._providers = providers
    self._clock = clock
    self._sleep = sleep
    self._fire_workers = fire_workers

  def get_state(self, namespace: ProviderName) -> RegistrationState:
    provider = self._providers.get(namespace)
    return map_registration_state(provider.registration_state)

  def _try_get_state(self, namespace: ProviderName) -> RegistrationState:
    try:
      return self.get_state(namespace)
    except ClientAuthenticationError as e:
      raise AuthenticationFailure(str(e)) from e
    except AzureError as e:
      # HTTP and transport errors alike; the next poll tick tries again
      logger.warning('Could not read registration state of %s: %s', namespace, e.message)
      return RegistrationState.Unknown

  def get_states(self, namespaces: Iterable[ProviderName]) -> List[ProviderNamespace]:
    return [ProviderNamespace(name=ns, state=self._try_get_state(ns)) for ns in namespaces]

  def _fire(self, namespace: ProviderName) -> Optional[str]:
    try:
      self._providers.register(namespace)
      logger.info('Registration requested for %s', namespace)
      return None
    except ClientAuthenticationError as e:
      raise AuthenticationFailure(str(e)) from e
    except AzureError as e:
      # Often a provider still registering from an earlier run
      logger.warning('Registration request for %s failed, polling anyway: %s', namespace, e.message)
      return str(e.message)

  def _wait(self, seconds: float, cancel: Optional[threading.Event]):
    if self._sleep is not None:
      self._sleep(seconds)
    elif cancel is not None:
      cancel.wait(seconds)
    else:
      time.sleep(seconds)

  def register_all(self, namespaces: Iterable[ProviderName],
                   timeout: float = BULK_REGISTRATION_TIMEOUT_SECONDS,
                   interval: float = BULK_REGISTRATION_INTERVAL_SECONDS,
                   cancel: Optional[threading.Event] = None) -> RegistrationResult:
    result = RegistrationResult()
    pending: List[ProviderName] = list(dict.fromkeys(namespaces))

    # Already registered providers do not need a request
    to_fire = []
    for namespace in pending:
      if self._try_get_state(namespace) == RegistrationState.Registered:
        logger.info('%s is already registered', namespace)
        result.registered.append(namespace)
      else:
        to_fire.append(namespace)
    pending = to_fire
    if not pending:
      return result

    # Fire phase: independent and idempotent, safe to issue concurrently
    with ThreadPoolExecutor(max_workers=max(1, min(self._fire_workers, len(pending)))) as executor:
      fire_errors: Dict[ProviderName, Optional[str]] = dict(zip(pending, executor.map(self._fire, pending)))
    result.fire_failures = {ns: err for ns, err in fire_errors.items() if err is not None}

    # Poll phase
    deadline = self._clock() + timeout
    ticks = 0
    while pending:
      if cancel is not None and cancel.is_set():
        logger.warning('Registration polling cancelled with %d providers pending.', len(pending))
        result.cancelled = True
        break
      ticks += 1
      still_pending = []
      for namespace in pending:
        state = self._try_get_state(namespace)
        if state == RegistrationState.Registered:
          logger.info('%s registered', namespace)
          result.registered.append(namespace)
        else:
          logger.debug('%s is %s', namespace, state.value)
          still_pending.append(namespace)
      pending = still_pending
      if not pending:
        break
      remaining = deadline - self._clock()
      if remaining <= 0:
        logger.warning('Timeout (%ss) reached after %d polls, still pending: %s', timeout, ticks, ', '.join(pending))
        break
      self._wait(min(interval, remaining), cancel)

    result.still_pending = pending
    return result

  def register_one(self, namespace: ProviderName,
                   timeout: float = SINGLE_REGISTRATION_TIMEOUT_SECONDS,
                   interval: float = SINGLE_REGISTRATION_INTERVAL_SECONDS,
                   cancel: Optional[threading.Event] = None) -> RegistrationResult:
    return self.register_all([namespace], timeout=timeout, interval=interval, cancel=cancel)
