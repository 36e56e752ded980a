"""Domain layer: catalog model, import pipeline and ports."""
