from .annotation import Annotation  # noqa: F401
from .catalog_color import CatalogColor, ColorAvailability  # noqa: F401
from .color_usage_ledger import ColorUsageLedger  # noqa: F401
from .project import Photo, Project  # noqa: F401
from .room import Room  # noqa: F401
from .synopsis import ColorSynopsis, SynopsisEntry  # noqa: F401
