"""Docker to Hipache route synchronizer.

Watches the Docker event stream and keeps Hipache frontend entries in Redis
in sync with the containers that are running.
"""

__version__ = "0.1.0"
