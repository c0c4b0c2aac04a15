import math
from typing import Callable

import logging
logger = logging.getLogger('arcdefender.utils')

DEBUGPY_PORT = 5678


def prepare_debug():
  # Only needed with --debug
  import debugpy
  debugpy.listen(DEBUGPY_PORT)
  logger.info('Waiting for debugger to attach on port %d', DEBUGPY_PORT)
  debugpy.wait_for_client()


def count_s(a, b):
  if b == 0:
    return '%d of %d' % (a, b)
  frac = math.floor(a / b * 100)
  return '%d of %d / %s %%' % (a, b, frac)


def confirm(question: str, input_fn: Callable[[str], str] = input) -> bool:
  answer = input_fn('%s [y/N] ' % question)
  return answer.strip().lower() in ('y', 'yes')
