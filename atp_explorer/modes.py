"""Session modes."""

from enum import Enum


class SessionMode(Enum):
    """Exactly one mode is active at any time."""

    BROWSING = "browsing"
    AUTOCOMPLETING = "autocompleting"
    ENTERING_PARAMETERS = "entering_parameters"
    VIEWING_HISTORY = "viewing_history"
    VIEWING_RESPONSE = "viewing_response"
