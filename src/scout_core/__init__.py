# core package for Workshop Scout
from . import cache_store, fetch_bridge, merger, planner, steam_paths, steam_web, workshop_items

__all__ = ["cache_store", "fetch_bridge", "merger", "planner", "steam_paths", "steam_web", "workshop_items"]
