"""Best-effort file removal for temporary pipeline files"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def remove_file(path) -> Optional[Exception]:
    """
    Delete a file if it exists.

    Returns the error instead of raising; a missing file is not an error.
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
        return e
    return None
