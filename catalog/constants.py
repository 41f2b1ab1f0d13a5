"""
Application-level constants for hardcoded business logic.

These values define event names and safety limits. For configurable
values (database pool, file locations, log level) see catalog/settings.py.
"""

# ============================================================================
# Change Notification Events
# ============================================================================

# Broadcast when an author's state, name or book count changed
AUTHOR_UPDATED_EVENT = "author_updated"

# Broadcast with the last snapshot of a deleted or merged-away author
AUTHOR_REMOVED_EVENT = "author_removed"

# Broadcast with snapshots of books whose author list changed
ITEMS_UPDATED_EVENT = "items_updated"


# ============================================================================
# Logging
# ============================================================================

# Structured log lines longer than this are truncated
MAX_LOG_SIZE_BYTES = 64 * 1024


# ============================================================================
# Files
# ============================================================================

# Name of the per-book metadata file written by the metadata writer
METADATA_FILE_NAME = "metadata.json"

# Prefix of every cached author image file
AUTHOR_IMAGE_CACHE_PREFIX = "author_"
