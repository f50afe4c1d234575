HEADERS = {
    "User-Agent": "WorkshopScout/1.0 (+https://github.com/workshop-scout/workshop-scout)",
    "Accept": "application/json",
}

STEAM_API_BASE = "https://api.steampowered.com"
