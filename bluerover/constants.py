"""
Constants for the BlueRover API client.
"""

# HTTP headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONNECTION = "Connection"

# Authorization scheme prefix: "BR <token>:<signature>"
AUTH_SCHEME = "BR"

DEFAULT_STREAM_PATH = "/eventstream"

# Characters left unescaped by URI-component encoding (besides alphanumerics
# and "_.-~", which urllib.parse.quote never escapes)
URI_COMPONENT_SAFE = "!*'()"

# Default configuration values
DEFAULT_CONFIG = {
    'timeout': 30,                      # One-shot call timeout in seconds
    'connect_timeout': 30,              # Stream connect timeout in seconds
    'idle_timeout': 4 * 60,             # Stream idle timeout in seconds
    'reconnect_delay_on_close': 2,      # After idle timeout or close
    'reconnect_delay_on_error': 4 * 60, # After a transport error
    'stream_path': DEFAULT_STREAM_PATH,
}

# Keys of DEFAULT_CONFIG that must be positive numbers
NUMERIC_CONFIG_KEYS = (
    'timeout',
    'connect_timeout',
    'idle_timeout',
    'reconnect_delay_on_close',
    'reconnect_delay_on_error',
)
