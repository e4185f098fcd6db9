"""
CLI Constants

Command names, help texts and defaults of the ``linkpreview`` CLI.
"""


class CLIDefaults:
    """CLI default values."""

    VERSION = "0.1.0"
    EXIT_SUCCESS = 0
    EXIT_ERROR = 1


class CLICommands:
    """CLI command names."""

    FETCH = "fetch"
    THUMBNAIL = "thumbnail"
    CACHE = "cache"
    CACHE_STATS = "stats"
    CACHE_PRUNE = "prune"
    CACHE_CLEAR = "clear"


class CLIHelp:
    """CLI help texts."""

    APP_NAME = "linkpreview"
    APP_DESCRIPTION = "LinkPreview - cached, rate-bounded link metadata for hover previews"
    APP_STYLE = "rich"
    VERSION_TEXT = "LinkPreview v{version}"

    FETCH_HELP = "Fetch preview metadata for one or more URLs."
    FETCH_URLS_HELP = "URLs to fetch"
    THUMBNAIL_HELP = "Show the direct thumbnail a URL maps to, without any network call."
    CACHE_HELP = "Inspect and maintain the persistent preview cache."
    CACHE_STATS_HELP = "Show cache and pipeline statistics."
    CACHE_PRUNE_HELP = "Remove expired and surplus persisted entries."
    CACHE_CLEAR_HELP = "Remove every persisted preview entry."
    CONFIG_HELP = "Path to a TOML configuration file"
