from enum import Enum

ITEM_CACHE_TTL = 24 * 60 * 60
PATH_CACHE_TTL = 60 * 60

ITEM_CACHE_FILE = "workshop_items_cache.json"
APP_INSTALL_PATH_CACHE_FILE = "app_install_path_cache.json"
LIBRARY_PATHS_CACHE_FILE = "library_paths_cache.json"
WORKSHOP_PATH_CACHE_FILE = "workshop_path_cache.json"

CACHE_FILES = (
    ITEM_CACHE_FILE,
    APP_INSTALL_PATH_CACHE_FILE,
    LIBRARY_PATHS_CACHE_FILE,
    WORKSHOP_PATH_CACHE_FILE,
)

FETCH_TIMEOUT = 30.0
POLL_INTERVAL = 0.01
PUMP_QUEUE_SIZE = 32

UNKNOWN_CREATOR = "[unknown]"


class FileType(Enum):
    """EWorkshopFileType, in platform order."""

    COMMUNITY = "Community"
    MICROTRANSACTION = "Microtransaction"
    COLLECTION = "Collection"
    ART = "Art"
    VIDEO = "Video"
    SCREENSHOT = "Screenshot"
    GAME = "Game"
    SOFTWARE = "Software"
    CONCEPT = "Concept"
    WEB_GUIDE = "WebGuide"
    INTEGRATED_GUIDE = "IntegratedGuide"
    MERCH = "Merch"
    CONTROLLER_BINDING = "ControllerBinding"
    STEAMWORKS_ACCESS_INVITE = "SteamworksAccessInvite"
    STEAM_VIDEO = "SteamVideo"
    GAME_MANAGED_ITEM = "GameManagedItem"

    @classmethod
    def from_code(cls, code: int) -> "FileType | None":
        members = list(cls)
        if 0 <= code < len(members):
            return members[code]
        return None


# Items of this type are the only ones the workshop-items command reports
ACCEPTED_FILE_TYPE = FileType.COMMUNITY.value
