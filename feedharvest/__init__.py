"""feedharvest - harvest posts from the X / Twitter web feed without the API."""
from .errors import AuthExpired, AuthMissing, HarvestError, NavigationFailure  # noqa: F401
from .models import ContentRecord, FilterCriteria, NavigationTarget  # noqa: F401
from .query import build_target  # noqa: F401
from .scraper import Harvester  # noqa: F401
