"""Layout and rendering constants.

Re-exports all constants for convenient importing:
    from pagetree.constants import META_FILENAME, ORDER_FILENAME
"""

from pagetree.constants.layout import *  # noqa: F403
from pagetree.constants.diagram import *  # noqa: F403
