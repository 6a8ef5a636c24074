from __future__ import annotations

from typing import Final

# Terminal events; every transition into a terminal phase fires exactly
# one of these, followed by DONE.
SUCCESS: Final = "success"
ERROR: Final = "error"
TIMEOUT: Final = "timeout"

DONE: Final = "done"

TERMINAL_EVENTS: Final = (SUCCESS, ERROR, TIMEOUT)
LIFECYCLE_EVENTS: Final = (SUCCESS, ERROR, TIMEOUT, DONE)
