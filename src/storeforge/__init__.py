"""storeforge: tool orchestration and business-intelligence engine for the store assistant."""

__version__ = "0.1.0"
