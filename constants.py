"""
Discord AutoReply - Constants
Centralized configuration constants to avoid magic numbers throughout the codebase.
"""

# =============================================================================
# GATE / COOLDOWN
# =============================================================================

DEFAULT_COOLDOWN_SECONDS = 5     # Silence enforced after each reply cycle
ERROR_ALERT_INTERVAL = 60        # At most one failure alert per this many seconds

# =============================================================================
# PACING
# =============================================================================

TYPING_RANDOM_MAX_SECONDS = 2.0  # Random component of the per-part delay
TYPING_SECONDS_PER_CHAR = 0.040  # Emulated typing speed (40ms per character)
PARAGRAPH_SEPARATOR = r"\n\s*\n+"
MAX_MESSAGE_LENGTH = 2000        # Discord's max message length

# =============================================================================
# HISTORY
# =============================================================================

DEFAULT_HISTORY_LENGTH = 10      # Messages fetched for context
MAX_HISTORY_LENGTH = 100         # Discord history page size

# =============================================================================
# ERROR CLASSIFICATION
# =============================================================================

# Lower-cased substring match against error text
NETWORK_ERROR_KEYWORDS = (
    "fetch",
    "network",
    "cors",
    "blocked",
    "csp",
    "content security policy",
    "connection",
)

# =============================================================================
# USER-FACING MESSAGES
# =============================================================================

DEFAULT_CUSTOM_INSTRUCTIONS = (
    "Please mimic the communication style based on the message history of the model. "
    "Maintain a natural, conversational tone."
)

ALERT_TITLE = "AutoReply"
ALERT_MISSING_KEY = "Please set your API key in the AutoReply settings."
ALERT_REPLY_FAILED = "Failed to generate reply. Please check your API key and try again."
ALERT_NETWORK_BLOCKED = (
    "The request to {provider} could not reach {domain}.\n\n"
    "Make sure this machine can open outbound HTTPS connections to {domain} "
    "(firewall, proxy or VPN rules) and that the address is not blocked.\n\n"
    "Error: {detail}"
)

# =============================================================================
# DASHBOARD / METRICS
# =============================================================================

DASHBOARD_DEFAULT_HOST = '127.0.0.1'
DASHBOARD_DEFAULT_PORT = 5000
METRICS_DEFAULT_PORT = 8000
