"""User interfaces for shelfie."""
