"""OAuth2 token lifecycle and authenticated repository access for Gitea."""

__version__ = "0.1.0"
