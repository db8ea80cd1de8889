"""mmhub — idempotent Mattermost workspace bootstrap."""

__version__ = "1.0.0"
