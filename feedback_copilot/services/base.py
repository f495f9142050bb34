"""
base.py
-------

Defines the **ServiceBase** class, a lightweight foundation for all core
services in the Feedback Co-Pilot stack.

### Responsibilities
- Hold the read-only `Settings` object each service was built with.
- Provide a per-service logger named after the concrete class.
- Fall back to the module-level settings when none are injected.

Subclasses take their collaborators (HTTP sessions, model clients) as
optional constructor arguments.
"""

from ..core.config import Settings, settings as default_settings
from ..core.logger import get_logger


class ServiceBase:
    """
    Base class for all system services.

    Attributes:
        settings (Settings): Configuration the service reads from.
        logger (logging.Logger): Logger named `feedback_copilot.<ClassName>`.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.logger = get_logger(type(self).__name__)
