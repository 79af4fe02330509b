"""chartverify — post-install verification of Helm charts on kind clusters."""

__version__ = "0.1.0"
