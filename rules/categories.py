"""
Preset website categories.

Each category expands into one website rule per domain when added.
"""

from typing import Any, Dict, Iterable, List

WEBSITE_CATEGORIES: Dict[str, Dict[str, Any]] = {
    "adult": {
        "name": "Adult Content",
        "description": "Adult and pornographic websites",
        "domains": [
            "pornhub.com",
            "xvideos.com",
            "xnxx.com",
            "xhamster.com",
            "redtube.com",
            "youporn.com",
            "tube8.com",
            "spankbang.com",
            "txxx.com",
            "porn.com",
            "eporner.com",
            "hqporner.com",
            "onlyfans.com",
        ],
    },
    "social": {
        "name": "Social Media",
        "description": "Social networking platforms",
        "domains": [
            "facebook.com",
            "instagram.com",
            "twitter.com",
            "x.com",
            "tiktok.com",
            "snapchat.com",
            "reddit.com",
            "linkedin.com",
            "pinterest.com",
            "tumblr.com",
            "whatsapp.com",
            "web.whatsapp.com",
            "discord.com",
            "threads.net",
        ],
    },
    "video": {
        "name": "Video Streaming",
        "description": "Video and streaming platforms",
        "domains": [
            "youtube.com",
            "m.youtube.com",
            "netflix.com",
            "twitch.tv",
            "hulu.com",
            "disneyplus.com",
            "primevideo.com",
            "hbomax.com",
            "max.com",
            "vimeo.com",
            "dailymotion.com",
            "crunchyroll.com",
        ],
    },
    "gaming": {
        "name": "Gaming",
        "description": "Gaming stores, launchers and game news",
        "domains": [
            "steam.com",
            "store.steampowered.com",
            "steamcommunity.com",
            "epicgames.com",
            "roblox.com",
            "minecraft.net",
            "blizzard.com",
            "battle.net",
            "riot.com",
            "leagueoflegends.com",
            "valorant.com",
            "playvalorant.com",
            "ea.com",
            "origin.com",
            "ubisoft.com",
            "ign.com",
            "gamespot.com",
        ],
    },
    "shopping": {
        "name": "Online Shopping",
        "description": "E-commerce and shopping websites",
        "domains": [
            "amazon.com",
            "ebay.com",
            "walmart.com",
            "target.com",
            "aliexpress.com",
            "wish.com",
            "etsy.com",
            "shopify.com",
            "bestbuy.com",
            "newegg.com",
        ],
    },
    "news": {
        "name": "News & Media",
        "description": "News websites and media outlets",
        "domains": [
            "cnn.com",
            "bbc.com",
            "nytimes.com",
            "washingtonpost.com",
            "theguardian.com",
            "foxnews.com",
            "reuters.com",
            "apnews.com",
            "bloomberg.com",
            "wsj.com",
        ],
    },
    "entertainment": {
        "name": "Entertainment",
        "description": "Entertainment and gossip websites",
        "domains": [
            "buzzfeed.com",
            "tmz.com",
            "9gag.com",
            "imgur.com",
            "giphy.com",
            "memes.com",
            "knowyourmeme.com",
        ],
    },
}


def get_domains_from_categories(category_ids: Iterable[str]) -> List[str]:
    """
    Collect the domains of the given categories, without duplicates.

    Unknown category IDs are ignored.
    """
    domains: List[str] = []
    for category_id in category_ids:
        category = WEBSITE_CATEGORIES.get(category_id)
        if not category:
            continue
        for domain in category["domains"]:
            if domain not in domains:
                domains.append(domain)
    return domains


def get_category_summaries() -> Dict[str, Dict[str, Any]]:
    """Category info for display (name, description, domain count)."""
    return {
        cat_id: {
            "name": cat["name"],
            "description": cat["description"],
            "domain_count": len(cat["domains"]),
        }
        for cat_id, cat in WEBSITE_CATEGORIES.items()
    }
