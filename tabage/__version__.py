"""Version information for Tabage."""

# Semantic versioning: MAJOR.MINOR.PATCH
# MAJOR: Breaking changes to persisted state layout or host protocols
# MINOR: New features, backward compatible
# PATCH: Bug fixes, backward compatible

__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.3.0 - Fingerprint-backed identity
#         - Entries keyed by generated UUID instead of the host tab id
#         - Stale tab ids repaired from {url, window, index} fingerprints
#         - Range-form bucket definitions migrated to threshold form on load
#         - Settings HTTP API replaces direct options-page storage writes
# 0.2.0 - Calendar-day ages
#         - Age computed on local midnight boundaries instead of elapsed 24h blocks
#         - Debounced persistence window reduced from 30s to 5s
# 0.1.0 - Initial release
#         - Daily scheduled regrouping, Today/Yesterday/Last Week/Older defaults
